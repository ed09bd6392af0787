"""Tests for the CLI entry point."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from fluidscribe import __version__
from fluidscribe.l1_entities.transcription import TranscriptionResult
from fluidscribe.l4_frameworks_and_drivers.cli import cli

_RUN_BATCH = 'fluidscribe.l4_frameworks_and_drivers.batch_runner.run_batch'
_FILE_LOGGING = 'fluidscribe.l4_frameworks_and_drivers.logging_setup.setup_file_logging'
_LIVE_WORKER = 'fluidscribe.l4_frameworks_and_drivers.workers.live_worker.run_live_worker'
_AUDIO_SOURCE = 'fluidscribe.l4_frameworks_and_drivers.container.DependencyContainer.audio_source'


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / 'config.yaml'
    path.write_text(
        yaml.dump({
            'vocabulary': {'path': str(tmp_path / 'vocab.json')},
            'output': {'directory': str(tmp_path / 'out'), 'format': 'json'},
        })
    )
    return path


class TestCliBasics:
    def test_version(self):
        result = CliRunner().invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, ['--help'])
        assert result.exit_code == 0
        for command in ('transcribe', 'record', 'vocab', 'models'):
            assert command in result.output

    def test_non_mapping_config_exits(self, tmp_path: Path):
        bad = tmp_path / 'bad.yaml'
        bad.write_text('- just\n- a list\n')
        result = CliRunner().invoke(cli, ['vocab', 'path', '-c', str(bad)])
        assert result.exit_code == 1
        assert 'mapping' in result.output

    def test_unknown_model_exits(self, tmp_path: Path):
        bad = tmp_path / 'bad.yaml'
        bad.write_text(yaml.dump({'transcription': {'model': 'whisper-xxl'}}))
        result = CliRunner().invoke(cli, ['models', 'status', '-c', str(bad)])
        assert result.exit_code == 1
        assert 'Unknown speech model' in result.output


class TestVocabCommands:
    def test_path(self, config_file: Path, tmp_path: Path):
        result = CliRunner().invoke(cli, ['vocab', 'path', '-c', str(config_file)])
        assert result.exit_code == 0
        assert result.output.strip() == str(tmp_path / 'vocab.json')

    def test_list_empty(self, config_file: Path):
        result = CliRunner().invoke(cli, ['vocab', 'list', '-c', str(config_file)])
        assert result.exit_code == 0
        assert 'No vocabulary terms.' in result.output

    def test_add_list_remove(self, config_file: Path):
        runner = CliRunner()
        added = runner.invoke(
            cli, ['vocab', 'add', 'Kubernetes', '--weight', '2', '--alias', 'cube ernetes', '-c', str(config_file)]
        )
        assert added.exit_code == 0
        assert 'Added: Kubernetes' in added.output

        listed = runner.invoke(cli, ['vocab', 'list', '-c', str(config_file)])
        assert 'Kubernetes (weight 2)' in listed.output
        assert 'cube ernetes' in listed.output

        removed = runner.invoke(cli, ['vocab', 'remove', 'kubernetes', '-c', str(config_file)])
        assert removed.exit_code == 0
        assert 'No vocabulary terms.' in runner.invoke(cli, ['vocab', 'list', '-c', str(config_file)]).output

    def test_add_replaces_same_term(self, config_file: Path):
        runner = CliRunner()
        runner.invoke(cli, ['vocab', 'add', 'gRPC', '-c', str(config_file)])
        runner.invoke(cli, ['vocab', 'add', 'grpc', '--weight', '5', '-c', str(config_file)])
        listed = runner.invoke(cli, ['vocab', 'list', '-c', str(config_file)]).output.strip().splitlines()
        assert listed == ['grpc (weight 5)']

    def test_add_rejected_when_full(self, config_file: Path, tmp_path: Path):
        vocab = tmp_path / 'vocab.json'
        vocab.write_text(json.dumps({'terms': [{'text': f'term{i:03d}'} for i in range(256)]}))
        before = vocab.read_text()

        result = CliRunner().invoke(cli, ['vocab', 'add', 'Overflow', '-c', str(config_file)])

        assert result.exit_code == 1
        assert 'Added' not in result.output
        assert 'vocabulary is full' in result.output
        assert vocab.read_text() == before

    def test_bundle_cap_does_not_truncate_saved_terms(self, tmp_path: Path):
        config = tmp_path / 'capped.yaml'
        config.write_text(yaml.dump({'vocabulary': {'path': str(tmp_path / 'vocab.json'), 'max_terms': 2}}))
        runner = CliRunner()
        for term in ('alpha', 'beta', 'gamma', 'delta'):
            assert runner.invoke(cli, ['vocab', 'add', term, '-c', str(config)]).exit_code == 0

        listed = runner.invoke(cli, ['vocab', 'list', '-c', str(config)]).output.split()
        assert listed == ['alpha', 'beta', 'gamma', 'delta']

    def test_add_blank_rejected(self, config_file: Path):
        result = CliRunner().invoke(cli, ['vocab', 'add', '   ', '-c', str(config_file)])
        assert result.exit_code == 2

    def test_remove_missing(self, config_file: Path):
        result = CliRunner().invoke(cli, ['vocab', 'remove', 'nothing', '-c', str(config_file)])
        assert result.exit_code == 1
        assert 'Not found' in result.output

    def test_corrupt_file_reported(self, config_file: Path, tmp_path: Path):
        (tmp_path / 'vocab.json').write_text('{not json')
        result = CliRunner().invoke(cli, ['vocab', 'list', '-c', str(config_file)])
        assert result.exit_code == 1
        assert 'Error:' in result.output


class TestModelsCommands:
    def test_list_marks_default(self):
        result = CliRunner().invoke(cli, ['models', 'list'])
        assert result.exit_code == 0
        assert any(line.startswith('* large-v3-turbo-q8_0') for line in result.output.splitlines())

    def test_status_reports_cache(self, config_file: Path):
        result = CliRunner().invoke(cli, ['models', 'status', '-c', str(config_file)])
        assert result.exit_code == 0
        assert 'large-v3-turbo-q8_0' in result.output
        assert 'Boost terms configured: no' in result.output


class TestTranscribeCommand:
    def test_uses_config_output(self, config_file: Path, tmp_path: Path):
        audio = tmp_path / 'talk.wav'
        audio.write_bytes(b'RIFF')
        with patch(_RUN_BATCH) as mock_run, patch(_FILE_LOGGING) as mock_logging:
            result = CliRunner().invoke(cli, ['transcribe', str(audio), '-c', str(config_file)])

        assert result.exit_code == 0
        args = mock_run.call_args[0]
        assert args[0] == audio
        assert args[2] == tmp_path / 'out' / 'talk_transcription.json'
        assert args[3] == 'json'
        mock_logging.assert_called_once_with(tmp_path / 'out')

    def test_explicit_output_and_format(self, config_file: Path, tmp_path: Path):
        audio = tmp_path / 'talk.wav'
        audio.write_bytes(b'RIFF')
        target = tmp_path / 'elsewhere' / 'notes.txt'
        with patch(_RUN_BATCH) as mock_run, patch(_FILE_LOGGING):
            result = CliRunner().invoke(
                cli, ['transcribe', str(audio), '-c', str(config_file), '-o', str(target), '--format', 'text']
            )

        assert result.exit_code == 0
        assert mock_run.call_args[0][2:] == (target, 'text')

    def test_missing_file(self):
        result = CliRunner().invoke(cli, ['transcribe', '/nonexistent/talk.wav'])
        assert result.exit_code == 2


class TestRecordCommand:
    def test_prints_final_transcript(self, config_file: Path):
        final = TranscriptionResult(text='dictated words', confidence=0.9)
        with patch(_AUDIO_SOURCE), patch(_LIVE_WORKER, return_value=final):
            result = CliRunner().invoke(cli, ['record', '-c', str(config_file)])
        assert result.exit_code == 0
        assert 'dictated words' in result.output

    def test_failure_exits_nonzero(self, config_file: Path):
        with patch(_AUDIO_SOURCE), patch(_LIVE_WORKER, return_value=None):
            result = CliRunner().invoke(cli, ['record', '-c', str(config_file)])
        assert result.exit_code == 1

    def test_silence(self, config_file: Path):
        with patch(_AUDIO_SOURCE), patch(_LIVE_WORKER, return_value=TranscriptionResult(text='')):
            result = CliRunner().invoke(cli, ['record', '-c', str(config_file)])
        assert result.exit_code == 0
        assert 'No speech detected.' in result.output
