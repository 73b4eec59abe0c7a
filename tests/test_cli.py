#!/usr/bin/env python3
"""
End-to-end tests for the untwister command line.
"""

import json
import time

import pytest

import prng_registry
import untwister_cli


def stdout_numbers(text):
    return [int(line) for line in text.splitlines() if line.strip().isdigit()]


class TestExitCodes:

    def test_help(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            untwister_cli.main(['-h'])
        assert excinfo.value.code == 0
        out = capsys.readouterr().out
        assert 'mt19937 (default)' in out
        assert 'java-util-random' in out

    def test_no_input(self, capsys):
        assert untwister_cli.main([]) == 1
        assert 'No input numbers provided' in capsys.readouterr().err

    def test_empty_input_file(self, write_outputs, capsys):
        path = write_outputs([])
        assert untwister_cli.main(['-i', str(path)]) == 1

    def test_missing_input_file(self, tmp_path, capsys):
        assert untwister_cli.main(['-i', str(tmp_path / 'nope.txt')]) == 1
        assert 'not found' in capsys.readouterr().err

    def test_unsupported_prng(self, write_outputs, capsys):
        path = write_outputs([1, 2, 3])
        assert untwister_cli.main(['-i', str(path), '-r', 'xorshift4096']) == 1
        assert 'xorshift4096' in capsys.readouterr().err

    @pytest.mark.parametrize("flags", [['-d', '0'], ['-t', '0'], ['-c', '0'], ['-c', '101']])
    def test_invalid_settings(self, write_outputs, flags):
        path = write_outputs([1, 2, 3])
        assert untwister_cli.main(['-i', str(path)] + flags) == 1


class TestInferenceRuns:

    def test_predicts_next_outputs(self, write_outputs, capsys):
        stream = prng_registry.generate('mt19937', 1234, 710)
        path = write_outputs(stream[:700])
        assert untwister_cli.main(['-i', str(path)]) == 0
        out = capsys.readouterr().out
        assert 'Recovered mt19937 internal state' in out
        assert stdout_numbers(out) == stream[700:710]

    def test_inference_json(self, write_outputs, tmp_path):
        stream = prng_registry.generate('java-util-random', 55, 15)
        path = write_outputs(stream[:5])
        out_path = tmp_path / 'result.json'
        assert untwister_cli.main(['-i', str(path), '-r', 'java-util-random', '-o', str(out_path)]) == 0
        record = json.loads(out_path.read_text())
        assert record['mode'] == 'inference'
        assert record['predicted_outputs'] == stream[5:15]

    def test_falls_back_to_bruteforce(self, write_outputs, capsys):
        path = write_outputs(prng_registry.generate('mt19937', 321, 100))
        code = untwister_cli.main(['-i', str(path), '-d', '20', '-t', '2', '--lower', '300', '--upper', '400'])
        assert code == 0
        out = capsys.readouterr().out
        assert 'falling back to bruteforce' in out
        assert 'Found seed 321 with a confidence of 100%' in out


class TestBruteforceRuns:

    def test_msvc_seed_with_json(self, write_outputs, tmp_path, capsys):
        path = write_outputs(prng_registry.generate('msvc-rand', 5000, 20))
        out_path = tmp_path / 'bruteforce.json'
        code = untwister_cli.main([
            '-i', str(path), '-r', 'msvc-rand', '-d', '20', '-t', '3',
            '--lower', '4000', '--upper', '6000', '-o', str(out_path),
        ])
        assert code == 0
        out = capsys.readouterr().out
        assert '[*] Looking for seed using msvc-rand' in out
        assert 'Found seed 5000 with a confidence of 100%' in out

        record = json.loads(out_path.read_text())
        assert record['mode'] == 'bruteforce'
        assert record['results'] == [{'seed': 5000, 'confidence': 100.0}]
        assert record['analysis_parameters']['seed_range'] == {'lower': 4000, 'upper': 6000}

    def test_no_seed_found(self, write_outputs, capsys):
        path = write_outputs(prng_registry.generate('glibc-rand', 5000, 10))
        code = untwister_cli.main(['-i', str(path), '-r', 'glibc-rand', '-d', '10', '--lower', '0', '--upper', '100'])
        assert code == 0
        assert 'No seed reached the minimum confidence' in capsys.readouterr().out

    def test_settings_file(self, write_outputs, tmp_path, capsys):
        path = write_outputs(prng_registry.generate('php-mt_rand', 77, 20))
        settings = tmp_path / 'engine.json'
        settings.write_text(json.dumps({'prng': 'php-mt_rand', 'depth': 20, 'threads': 2}))
        code = untwister_cli.main(['-i', str(path), '--config', str(settings), '--lower', '0', '--upper', '200'])
        assert code == 0
        assert 'Found seed 77 with a confidence of 100%' in capsys.readouterr().out


class TestGenerate:

    def test_sample_from_seed(self, capsys):
        assert untwister_cli.main(['-g', '12345', '-r', 'php-mt_rand']) == 0
        values = stdout_numbers(capsys.readouterr().out)
        assert 10 <= len(values) <= 100
        assert values == prng_registry.generate('php-mt_rand', 12345, len(values))

    def test_continue_from_inferred_state(self, write_outputs, capsys):
        stream = prng_registry.generate('ruby-rand', 8, 630)
        path = write_outputs(stream[:625])
        assert untwister_cli.main(['-i', str(path), '-r', 'ruby-rand', '-g', '0', '-d', '5']) == 0
        assert stdout_numbers(capsys.readouterr().out) == stream[625:630]

    def test_continue_fails_without_window(self, write_outputs, capsys):
        path = write_outputs(prng_registry.generate('mt19937', 8, 10))
        assert untwister_cli.main(['-i', str(path), '-g', '0']) == 1
        assert 'Could not infer' in capsys.readouterr().err


class TestSeedBounds:

    def test_defaults_to_full_space(self):
        args = untwister_cli.build_parser().parse_args([])
        assert untwister_cli.seed_bounds(args) == (0, 2 ** 32)

    def test_unix_time_window(self):
        args = untwister_cli.build_parser().parse_args(['-u'])
        lower, upper = untwister_cli.seed_bounds(args)
        now = int(time.time())
        assert upper - lower == 2 * untwister_cli.ONE_YEAR
        assert lower <= now <= upper

    def test_explicit_bounds_override(self):
        args = untwister_cli.build_parser().parse_args(['-u', '--lower', '10', '--upper', '20'])
        assert untwister_cli.seed_bounds(args) == (10, 20)
