"""CLI entry point for the translator."""

import asyncio
import logging
from typing import Optional

import click

from . import __version__
from .config import AVAILABLE_LANGUAGES, LANGUAGE_NAMES, TranslatorConfig
from .core import TranslationService
from .logging_config import setup_logging

LANGUAGE_CHOICE = click.Choice([language.code for language in AVAILABLE_LANGUAGES])


def backend_options(func):
    """Options shared by every command that talks to a backend."""
    options = [
        click.option('--huggingface', 'use_huggingface', is_flag=True,
                     help='Use HuggingFace models instead of Ollama'),
        click.option('--ollama-url', default='http://localhost:11434', help='Ollama API URL'),
        click.option('--model', default='translategemma:12b', help='Ollama model name'),
        click.option('--hf-cache-dir', default=None, help='HuggingFace model cache directory'),
        click.option('--verbose', '-v', is_flag=True, help='Verbose output'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_config(
    use_huggingface: bool,
    ollama_url: str,
    model: str,
    hf_cache_dir: Optional[str],
    verbose: bool,
    **overrides
) -> TranslatorConfig:
    setup_logging(logging.DEBUG if verbose else logging.WARNING)
    return TranslatorConfig(
        use_huggingface=use_huggingface,
        ollama_url=ollama_url,
        ollama_model=model,
        hf_cache_dir=hf_cache_dir,
        verbose=verbose,
        **overrides
    )


def show_progress(value: float):
    """Print download progress the way the translator screen shows it."""
    if 0.0 < value < 1.0:
        click.secho(f"Downloading translation model: {int(value * 100)}%", fg='cyan', err=True)
    elif value == 1.0:
        click.secho("Translation model ready.", fg='cyan', err=True)


@click.group()
@click.version_option(version=__version__)
def cli():
    """Translate text between two languages using downloadable models."""
    pass


@cli.command()
@click.argument('text')
@click.option('--source', '-s', type=LANGUAGE_CHOICE, default='en', help='Source language code')
@click.option('--target', '-t', type=LANGUAGE_CHOICE, default='es', help='Target language code')
@click.option('--allow-cellular/--wifi-only', default=True,
              help='Whether the model may be downloaded over a metered connection')
@click.option('--download-timeout', type=float, default=None, help='Seconds to wait for the model download')
@click.option('--translate-timeout', type=float, default=None, help='Seconds to wait for the translation')
@backend_options
def translate(
    text: str,
    source: str,
    target: str,
    allow_cellular: bool,
    download_timeout: Optional[float],
    translate_timeout: Optional[float],
    **backend
):
    """Translate TEXT from the source to the target language."""
    config = build_config(
        source_language=source,
        target_language=target,
        allow_cellular=allow_cellular,
        download_timeout=download_timeout,
        translate_timeout=translate_timeout,
        **backend
    )

    async def run() -> tuple[str, bool]:
        async with TranslationService(config=config) as service:
            service.download_progress.subscribe(show_progress)
            result = await service.translate(text, source, target)
            return result, service.last_error is not None

    if config.verbose:
        click.echo(f"Translating from {LANGUAGE_NAMES[source]} to {LANGUAGE_NAMES[target]}")

    result, failed = asyncio.run(run())
    if failed:
        click.secho(result, fg='red', err=True)
        raise SystemExit(1)
    click.echo(result)


@cli.command()
@click.option('--source', '-s', type=LANGUAGE_CHOICE, default='en', help='Source language code')
@click.option('--target', '-t', type=LANGUAGE_CHOICE, default='es', help='Target language code')
@backend_options
def interactive(source: str, target: str, **backend):
    """Translate lines typed at the prompt until an empty line."""
    config = build_config(source_language=source, target_language=target, reuse_engine=True, **backend)
    service = TranslationService(config=config)
    service.download_progress.subscribe(show_progress)

    click.echo(f"{LANGUAGE_NAMES[source]} -> {LANGUAGE_NAMES[target]}. Empty line to quit.")

    async def run():
        while True:
            text = await asyncio.to_thread(
                click.prompt, "Enter text to translate", default="", show_default=False
            )
            if not text.strip():
                break
            result = await service.translate(text, source, target)
            if service.last_error is not None:
                click.secho(result, fg='red')
            else:
                click.secho(result, fg='green')

    try:
        asyncio.run(run())
    except click.Abort:
        click.echo()
    finally:
        service.release()


@cli.command()
def languages():
    """List the supported languages."""
    for language in AVAILABLE_LANGUAGES:
        click.echo(f"  {language.code:<4}{language.display_name}")


@cli.command()
@click.argument('language', required=False)
@backend_options
def check(language: Optional[str], **backend):
    """Check if the translation backend is available.

    With LANGUAGE, also report whether its model is already downloaded.
    """
    config = build_config(**backend)
    service = TranslationService(config=config)

    ready, message = service.is_ready()
    if ready:
        click.secho("Translation backend is ready!", fg='green')
    else:
        click.secho(f"Error: {message}", fg='red')

    if config.use_huggingface:
        click.echo(f"  Model cache: {service.backend.cache_dir}")
    else:
        click.echo(f"  Ollama URL: {config.ollama_url}")
        click.echo(f"  Model: {config.ollama_model}")

    if language is not None:
        available = asyncio.run(service.is_model_available(language))
        name = LANGUAGE_NAMES.get(language, language)
        if available:
            click.secho(f"  {name} model is downloaded", fg='green')
        else:
            click.secho(f"  {name} model is not downloaded", fg='yellow')

    if not ready:
        raise SystemExit(1)


if __name__ == '__main__':
    cli()
