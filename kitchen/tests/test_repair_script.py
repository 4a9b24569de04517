import json

from kitchen.utilities import repair


def test_repair_script_on_empty_store(tmp_path, capsys):
    data_file = tmp_path / "kitchen.json"
    assert repair.main(["--data-file", str(data_file)]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary == {"scanned_lists": 0, "fixed_lists": 0, "fixed_items": 0}


def test_repair_script_reports_bad_store(tmp_path):
    data_file = tmp_path / "kitchen.json"
    data_file.write_text("{not json", encoding="utf-8")
    assert repair.main(["--data-file", str(data_file)]) == 1
