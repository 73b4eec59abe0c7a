"""
Tests for input loading and JSON result export.
"""

import json

import pytest

from recovery.confidence_scorer import SeedResult
from recovery.engine_config import EngineConfig
from utils import build_record, parse_value, read_observed_outputs, save_results
from utils.input_reader import parse_lines


class TestParseValue:

    @pytest.mark.parametrize("text,expected", [
        ("12345", 12345),
        ("  42\n", 42),
        ("0x1F", 31),
        ("0XfF", 255),
        ("0o17", 15),
        ("0b101", 5),
        ("017", 15),
        ("0", 0),
        ("4294967295", 0xFFFFFFFF),
        ("4294967296", 0),
        ("-1", 0xFFFFFFFF),
        ("+7", 7),
        ("123 trailing text", 123),
    ])
    def test_parses(self, text, expected):
        assert parse_value(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "# comment", "x12"])
    def test_unparseable(self, text):
        assert parse_value(text) is None

    def test_parse_lines_skips_noise(self):
        assert parse_lines(["1\n", "\n", "junk\n", "  \n", "0x10\n"]) == [1, 16]


class TestReadObservedOutputs:

    def test_reads_file(self, write_outputs):
        path = write_outputs([3499211612, 581869302, 3890346734])
        assert read_observed_outputs(path) == [3499211612, 581869302, 3890346734]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_observed_outputs(tmp_path / "missing.txt")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("")
        assert read_observed_outputs(path) == []


class TestResultsWriter:

    def test_bruteforce_record(self):
        config = EngineConfig.build(prng='msvc-rand', depth=20, threads=2)
        record = build_record('bruteforce', config, 20,
                              results=[SeedResult(9, 100.0)],
                              search_range={'lower': 0, 'upper': 100},
                              execution_time=1.23456)
        assert record['mode'] == 'bruteforce'
        assert record['results'] == [{'seed': 9, 'confidence': 100.0}]
        assert record['analysis_parameters']['prng_type'] == 'msvc-rand'
        assert record['analysis_parameters']['seed_range'] == {'lower': 0, 'upper': 100}
        assert record['run_metadata']['execution_time_seconds'] == 1.235
        assert 'predicted_outputs' not in record

    def test_inference_record(self):
        record = build_record('inference', EngineConfig.build(), 624, predicted_outputs=[1, 2, 3])
        assert record['predicted_outputs'] == [1, 2, 3]
        assert 'results' not in record
        assert record['run_metadata']['execution_time_seconds'] is None

    def test_save_creates_directories(self, tmp_path):
        record = build_record('inference', EngineConfig.build(), 1, predicted_outputs=[7])
        path = save_results(tmp_path / "out" / "nested" / "result.json", record)
        assert path.exists()
        assert json.loads(path.read_text())['predicted_outputs'] == [7]
