#!/usr/bin/env python3
"""
Tests for the command line entry point.
"""

import argparse
import json
import logging
import os
import sys

import pytest

# Add the project root to the path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import main as cli
from aidplanner.config.config import reset_config
from aidplanner.processing.segment_analyzer import Checkpoint


@pytest.fixture(autouse=True)
def detach_log_handlers():
    """main() attaches a console handler bound to the captured stdout."""
    yield
    logger = logging.getLogger("aidplanner")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def gpx_file(tmp_path, out_and_back_gpx, clean_env):
    reset_config()
    path = tmp_path / "race.gpx"
    path.write_text(out_and_back_gpx, encoding='utf-8')
    yield str(path)
    reset_config()


def test_parse_station():
    assert cli.parse_station("Aid=Station=4.5") == Checkpoint("Aid=Station", 4.5)
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_station("no mile")
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_station("Aid=far")


def test_table_output(gpx_file, capsys):
    assert cli.main([gpx_file, "--station", "Creek=4", "--station", "Turnaround=10"]) == 0
    out = capsys.readouterr().out

    assert "Total distance: 20.0 miles" in out
    assert "Creek: mile 4.0, elevation " in out
    assert "Turnaround: mile 10.0, elevation " in out
    assert "Gain (ft)" in out
    assert "Turnaround" in out


def test_json_output(gpx_file, capsys):
    assert cli.main([gpx_file, "--json", "--smooth"]) == 0
    out = capsys.readouterr().out
    report = json.loads(out[out.index("{\n"):])

    assert len(report['waypoints']) == 5
    assert report['segments'][0]['start'] == "Start"


def test_missing_file_is_reported(tmp_path, clean_env, capsys):
    reset_config()
    try:
        assert cli.main([str(tmp_path / "missing.gpx")]) == 1
    finally:
        reset_config()
    assert "Error" in capsys.readouterr().err
