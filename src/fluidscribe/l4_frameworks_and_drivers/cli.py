"""CLI entry point for fluidscribe."""

from __future__ import annotations

import sys
import threading
from pathlib import Path

import click

from fluidscribe import __version__


def _build_container(config_path: str | None, overrides: dict | None = None):
    from fluidscribe.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from fluidscribe.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: numpy/scipy not loaded on --help
        DependencyContainer,
    )
    from fluidscribe.l4_frameworks_and_drivers.infra_config import (  # noqa: PLC0415 -- deferred: not needed for --help
        build_app_config,
    )

    try:
        raw = YamlConfigLoader().load_raw(config_path, overrides=overrides)
        config = build_app_config(raw)
        return DependencyContainer(config)
    except (FileNotFoundError, ValueError, KeyError) as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)


config_option = click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to YAML config file.',
)


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Print debug logging to stderr.')
@click.version_option(version=__version__)
def cli(verbose):
    """fluidscribe -- local speech-to-text with vocabulary boosting."""
    from fluidscribe.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: not needed for --help
        setup_console_logging,
    )

    setup_console_logging(verbose)


@cli.command()
@click.argument('audio_file', type=click.Path(exists=True, dir_okay=False))
@config_option
@click.option('-o', '--output', 'output_path', default=None, type=click.Path(), help='Output file path.')
@click.option(
    '--format',
    'fmt',
    default=None,
    type=click.Choice(['text', 'json']),
    help='Export format (defaults to output.format from config).',
)
def transcribe(audio_file, config_path, output_path, fmt):
    """Transcribe an audio or video file of any length."""
    from fluidscribe.l4_frameworks_and_drivers.batch_runner import (  # noqa: PLC0415 -- deferred: file pipeline only
        default_output_path,
        run_batch,
    )
    from fluidscribe.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: not needed for --help
        setup_file_logging,
    )

    container = _build_container(config_path)
    fmt = fmt or container.config.output.format
    audio_path = Path(audio_file)
    out_dir = Path(container.config.output.directory)
    out_path = Path(output_path) if output_path else default_output_path(audio_path, out_dir, fmt)
    setup_file_logging(out_path.parent)
    run_batch(audio_path, container, out_path, fmt)


@cli.command()
@config_option
def record(config_path):
    """Dictate from the microphone until Ctrl+C, then print the final transcript."""
    from fluidscribe.l4_frameworks_and_drivers.messages import (  # noqa: PLC0415 -- deferred: recording only
        ModelDownloadProgress,
        TranscriptUpdate,
        WorkerStatus,
    )
    from fluidscribe.l4_frameworks_and_drivers.workers.live_worker import (  # noqa: PLC0415 -- deferred: recording only
        run_live_worker,
    )

    container = _build_container(config_path)
    stop = threading.Event()
    outcome: dict = {}

    def _post(message) -> None:
        if isinstance(message, ModelDownloadProgress):
            click.echo(f'\r  Preparing {message.model_name}: {message.percent}%', err=True, nl=False)
        elif isinstance(message, WorkerStatus):
            if message.status == 'error':
                click.echo(f'\nError: {message.error}', err=True)
            elif message.status == 'recording':
                click.echo('\nRecording... press Ctrl+C to stop.', err=True)
            elif message.status == 'transcribing':
                click.echo('\nFinishing transcription...', err=True)
        elif isinstance(message, TranscriptUpdate) and not message.is_final:
            click.echo(f'\r  … {message.text[-100:]}', err=True, nl=False)

    def _work() -> None:
        outcome['result'] = run_live_worker(
            _post,
            stop.is_set,
            container.provider,
            container.audio_source(),
            use_case=container.live_use_case(),
            streaming_interval=container.config.transcription.streaming_interval,
        )

    worker = threading.Thread(target=_work, name='fscribe-live', daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(timeout=0.2)
    except KeyboardInterrupt:
        stop.set()
        worker.join()
    finally:
        container.provider.close()

    result = outcome.get('result')
    if result is None:
        sys.exit(1)
    if not result.text.strip():
        click.echo('No speech detected.', err=True)
        return
    click.echo(result.text)


@cli.group()
def vocab():
    """Manage vocabulary boost terms."""


@vocab.command('list')
@config_option
def vocab_list(config_path):
    """Show the persisted terms."""
    from fluidscribe.l1_entities.errors import FluidscribeError  # noqa: PLC0415 -- deferred: not needed for --help

    store = _build_container(config_path).vocabulary
    try:
        terms = store.load_user_terms()
    except FluidscribeError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)
    if not terms:
        click.echo('No vocabulary terms.')
        return
    for term in terms:
        weight = f' (weight {term.weight:g})' if term.weight is not None else ''
        aliases = f'  aliases: {", ".join(term.aliases)}' if term.aliases else ''
        click.echo(f'{term.text}{weight}{aliases}')


@vocab.command('add')
@click.argument('text')
@click.option('--weight', type=float, default=None, help='Boost weight; unweighted terms are evicted first.')
@click.option('--alias', 'aliases', multiple=True, help='Alternative spoken form (repeatable).')
@config_option
def vocab_add(text, weight, aliases, config_path):
    """Add or replace a term."""
    from fluidscribe.l1_entities.errors import FluidscribeError  # noqa: PLC0415 -- deferred: not needed for --help
    from fluidscribe.l1_entities.vocabulary import (  # noqa: PLC0415 -- deferred: not needed for --help
        MAX_TERMS,
        VocabularyTerm,
    )

    if not text.strip():
        raise click.BadParameter('term text must not be empty', param_hint='TEXT')
    store = _build_container(config_path).vocabulary
    try:
        terms = [t for t in store.load_user_terms() if t.text.lower() != text.strip().lower()]
        if len(terms) >= MAX_TERMS:
            click.echo(f'Error: vocabulary is full ({MAX_TERMS} terms); remove a term first.', err=True)
            sys.exit(1)
        terms.append(VocabularyTerm(text=text.strip(), weight=weight, aliases=tuple(aliases)))
        store.save_user_terms(terms)
    except FluidscribeError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)
    click.echo(f'Added: {text.strip()}')


@vocab.command('remove')
@click.argument('text')
@config_option
def vocab_remove(text, config_path):
    """Remove a term (case-insensitive)."""
    from fluidscribe.l1_entities.errors import FluidscribeError  # noqa: PLC0415 -- deferred: not needed for --help

    store = _build_container(config_path).vocabulary
    try:
        terms = store.load_user_terms()
        kept = [t for t in terms if t.text.lower() != text.strip().lower()]
        if len(kept) == len(terms):
            click.echo(f'Not found: {text}', err=True)
            sys.exit(1)
        store.save_user_terms(kept)
    except FluidscribeError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)
    click.echo(f'Removed: {text.strip()}')


@vocab.command('path')
@config_option
def vocab_path(config_path):
    """Print the location of the vocabulary file."""
    click.echo(str(_build_container(config_path).vocabulary_path))


@cli.group()
def models():
    """Inspect or clear downloaded speech models."""


@models.command('list')
def models_list():
    """List the known speech models."""
    from fluidscribe.l1_entities.speech_models import (  # noqa: PLC0415 -- deferred: not needed for --help
        DEFAULT_MODEL_ID,
        SPEECH_MODELS,
    )

    for model_id, spec in SPEECH_MODELS.items():
        marker = '*' if model_id == DEFAULT_MODEL_ID else ' '
        click.echo(f'{marker} {model_id:<22} {spec.display_name}')


@models.command('status')
@config_option
def models_status(config_path):
    """Show whether the configured model is cached locally."""
    container = _build_container(config_path)
    provider = container.provider
    on_disk = provider.models_exist_on_disk()
    click.echo(f'Model:     {container.spec.display_name} ({container.spec.model_id})')
    click.echo(f'Cache:     {container.fetcher.cache_dir(container.spec)}')
    click.echo(f'On disk:   {"yes" if on_disk else "no"}')
    click.echo(f'Available: {"yes" if provider.is_available else "no"}')
    click.echo(f'Boost terms configured: {"yes" if container.vocabulary.has_any_terms() else "no"}')


@models.command('clear')
@config_option
@click.confirmation_option(prompt='Delete the cached model files?')
def models_clear(config_path):
    """Delete the configured model's cached files."""
    container = _build_container(config_path)
    try:
        container.provider.clear_cache()
    except OSError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)
    click.echo(f'Cleared cache for {container.spec.display_name}.')
