"""Tests for the command-line entry point."""

import logging
import re
from fractions import Fraction

from deploysim.cli import LOG_LEVEL_ENV, build_parser, log_level_from_env, main
from deploysim.simulation import YEAR_TIME


def _run_main(capsys, *extra):
    argv = ["--trials", "40", "--workers", "1", "--chunk-size", "20", "--seed", "3", *extra]
    assert main(argv) == 0
    return capsys.readouterr().out.splitlines()


class TestOutput:
    def test_three_result_lines(self, capsys):
        lines = _run_main(capsys)
        assert len(lines) == 3
        assert re.fullmatch(r"Unavailable sum: \d+", lines[0])
        assert re.fullmatch(r"Average unavailable time: \d+(/\d+)? \([\d.e+-]+\)", lines[1])
        assert re.fullmatch(r"Percent: \d+(/\d+)?\([\d.e+-]+\)", lines[2])

    def test_values_are_consistent(self, capsys):
        lines = _run_main(capsys)
        total = int(lines[0].split(": ")[1])
        average = Fraction(lines[1].split(": ")[1].split(" ")[0])
        percent = Fraction(lines[2].split(": ")[1].split("(")[0])

        assert average == Fraction(total, 40)
        assert percent == 100 * (1 - average / YEAR_TIME)
        assert 27 <= average <= 81

    def test_summary_flag(self, capsys):
        lines = _run_main(capsys, "--summary")
        assert any("Monte Carlo Results (40 trials)" in line for line in lines)


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.trials == 10_000_000
        assert args.seed is None
        assert args.workers >= 1
        assert not args.summary


class TestLogLevel:
    def test_default_is_warning(self, monkeypatch):
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
        assert log_level_from_env() == logging.WARNING

    def test_debug(self, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "debug")
        assert log_level_from_env() == logging.DEBUG

    def test_unknown_falls_back(self, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "chatty")
        assert log_level_from_env() == logging.WARNING

    def test_debug_tracing_does_not_change_results(self, capsys, caplog):
        quiet = _run_main(capsys)
        with caplog.at_level(logging.DEBUG, logger="deploysim"):
            traced = _run_main(capsys)
        assert traced == quiet
        assert any("bad release at" in r.getMessage() for r in caplog.records)
