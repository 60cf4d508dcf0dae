import json

from resume_text_parser import cli

TEXT = "Jane Doe\nSKILLS\nPython, Terraform\nINTERESTS\nChess\n"


def test_text_input_writes_json(tmp_path):
    source = tmp_path / "resume.txt"
    source.write_text(TEXT, encoding="utf-8")
    output = tmp_path / "out.json"
    assert cli.main([str(source), "--text", "-o", str(output)]) == 0
    record = json.loads(output.read_text(encoding="utf-8"))
    assert record["name"] == "Jane Doe"
    assert record["skills"]["languages"] == ["python"]
    assert record["interests"] == ["Chess"]


def test_stdout_output(tmp_path, capsys):
    source = tmp_path / "resume.txt"
    source.write_text(TEXT, encoding="utf-8")
    assert cli.main([str(source), "--text", "-o", "-"]) == 0
    assert json.loads(capsys.readouterr().out)["name"] == "Jane Doe"


def test_skill_table(tmp_path):
    source = tmp_path / "resume.txt"
    source.write_text(TEXT, encoding="utf-8")
    table = tmp_path / "skills.json"
    table.write_text(json.dumps({"tools": ["terraform"]}), encoding="utf-8")
    output = tmp_path / "out.json"
    args = [str(source), "--text", "--skill-table", str(table), "-o", str(output)]
    assert cli.main(args) == 0
    record = json.loads(output.read_text(encoding="utf-8"))
    assert record["skills"]["tools"] == ["terraform"]


def test_bad_skill_table(tmp_path):
    source = tmp_path / "resume.txt"
    source.write_text(TEXT, encoding="utf-8")
    table = tmp_path / "skills.json"
    table.write_text("[]", encoding="utf-8")
    args = [str(source), "--text", "--skill-table", str(table), "-o", str(tmp_path / "o.json")]
    assert cli.main(args) == 1


def test_missing_file(tmp_path):
    assert cli.main([str(tmp_path / "nope.txt"), "--text", "-o", "-"]) == 1


def test_pdf_input_goes_through_extraction(tmp_path, monkeypatch):
    calls = []

    def fake_parse_pdf(source, **options):
        calls.append((source, options))
        return {"name": "Jane Doe"}

    monkeypatch.setattr(cli, "parse_pdf", fake_parse_pdf)
    output = tmp_path / "out.json"
    assert cli.main([str(tmp_path / "cv.pdf"), "--latinize", "-o", str(output)]) == 0
    assert calls == [(tmp_path / "cv.pdf", {"latinize": True})]
    assert json.loads(output.read_text(encoding="utf-8")) == {"name": "Jane Doe"}


def test_extraction_failure_exit_code(tmp_path):
    bad = tmp_path / "bad.pdf"
    bad.write_bytes(b"not a pdf at all")
    assert cli.main([str(bad), "-o", str(tmp_path / "o.json")]) == 1


def test_skill_table_entry_must_be_a_list(tmp_path):
    source = tmp_path / "resume.txt"
    source.write_text(TEXT, encoding="utf-8")
    for value in (None, 5):
        table = tmp_path / "skills.json"
        table.write_text(json.dumps({"tools": value}), encoding="utf-8")
        args = [str(source), "--text", "--skill-table", str(table), "-o", "-"]
        assert cli.main(args) == 1


def test_unwritable_output(tmp_path):
    source = tmp_path / "resume.txt"
    source.write_text(TEXT, encoding="utf-8")
    output = tmp_path / "missing-dir" / "out.json"
    assert cli.main([str(source), "--text", "-o", str(output)]) == 1
