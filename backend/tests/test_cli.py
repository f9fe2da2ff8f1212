"""Tests for the command line entry point."""

import json

from app.__main__ import main


def _write_candles(path, n: int = 30) -> None:
    rows = [
        {"time": 1_700_000_000 + i * 86400, "open": 50 + i, "high": 52 + i, "low": 49 + i, "close": 51 + i}
        for i in range(n)
    ]
    path.write_text(json.dumps(rows))


class TestCli:
    def test_list_templates(self, capsys):
        assert main(["--list-templates"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert "SMA 20" in out
        assert "ML3 Bull Bear Power" in out

    def test_compute_from_file(self, tmp_path, capsys):
        candles = tmp_path / "candles.json"
        _write_candles(candles)
        script = tmp_path / "script.pine"
        script.write_text("RSI 14")

        code = main([
            "--candles", str(candles),
            "--template", "SMA 20",
            "--script-file", str(script),
            "--script", "EMA 5",
        ])

        assert code == 0
        body = json.loads(capsys.readouterr().out)
        assert [r["name"] for r in body["results"]] == ["SMA 20", "RSI 14", "EMA 5"]
        assert body["is_placeholder"] is False
        assert body["next_color_index"] == 3

    def test_requires_candle_source(self):
        assert main(["--script", "SMA 5"]) == 2

    def test_unknown_template(self, tmp_path):
        candles = tmp_path / "candles.json"
        _write_candles(candles)
        assert main(["--candles", str(candles), "--template", "Nope"]) == 2

    def test_unreadable_candles(self, tmp_path):
        candles = tmp_path / "candles.json"
        candles.write_text('{"error": "quota"}')
        assert main(["--candles", str(candles), "--script", "SMA 5"]) == 1
