"""Interactive CLI for LocalTranslate."""

import logging
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.styles import Style

from .config import (
    get_config,
    create_default_config,
    DEFAULT_CONFIG_DIR,
)
from .detector import (
    detect_language,
    get_target_language,
    format_language_indicator,
    get_language_name,
    is_valid_language,
)
from .errors import TranslationError
from .model import get_model_info, list_models
from .translator import Translator, get_translator
from .types import Language, ModelKind

app = typer.Typer(
    name="localtranslate",
    help="On-device Japanese ↔ English translation powered by llama.cpp",
    no_args_is_help=False,
)
console = Console()

# Prompt style
prompt_style = Style.from_dict({
    "prompt": "#00aa00 bold",
})


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def run_translation(
    translator: Translator,
    text: str,
    source: Optional[Language],
    target: Optional[Language],
):
    """Translate on a worker thread while a spinner runs."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Translating...", total=None)
        future = translator.translate_async(text, source, target)
        return future.result()


def print_welcome(translator: Translator):
    """Print welcome message."""
    console.print()
    console.print(
        Panel(
            "[bold]LocalTranslate Interactive[/bold] (ja ↔ en)\n"
            f"[dim]Model: {translator.adapter.name} | Type /help for commands[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def print_help():
    """Print help message."""
    help_text = """
[bold]Commands:[/bold]
  [cyan]/to <lang>[/cyan]     - Force translation to language (ja or en)
  [cyan]/auto[/cyan]          - Translate into the opposite of the detected language (default)
  [cyan]/model[/cyan]         - Show current model info
  [cyan]/config[/cyan]        - Show current configuration
  [cyan]/clear[/cyan]         - Clear screen
  [cyan]/help[/cyan]          - Show this help
  [cyan]/quit[/cyan]          - Exit (or /exit, Ctrl+D)
"""
    console.print(help_text)


def print_languages():
    """Print supported languages."""
    table = Table(title="Supported Languages")
    table.add_column("Code", style="cyan")
    table.add_column("Language", style="white")
    for language in Language:
        table.add_row(language.code, get_language_name(language))
    console.print(table)


def print_config(force_target: Optional[Language] = None):
    """Print current configuration."""
    config = get_config()

    console.print("\n[bold]Current Configuration:[/bold]")
    console.print(f"  Model kind: [cyan]{config.model_kind.value}[/cyan]")
    console.print(f"  Weights: [cyan]{config.model_path}[/cyan]")
    console.print(f"  Executable: [cyan]{config.executable or 'auto-detect'}[/cyan]")
    console.print(f"  Context size: [cyan]{config.context_size}[/cyan]")
    console.print(f"  Temperature: [cyan]{config.temperature}[/cyan]")
    console.print(f"  Max tokens: [cyan]{config.max_tokens}[/cyan]")

    if force_target:
        console.print(f"  Force target: [cyan]{get_language_name(force_target)}[/cyan]")
    else:
        console.print("  Force target: [dim]auto-detect[/dim]")

    console.print(f"\n  Config file: [dim]{config.config_path}[/dim]")
    console.print()


def print_model_status(kind: Optional[ModelKind] = None):
    """Print registry and adapter details for a model."""
    info = get_model_info(kind)
    console.print(f"\n[bold]Model:[/bold] {info['name']}")
    console.print(f"[bold]Kind:[/bold] {info['kind']}")
    console.print(f"[bold]Adapter:[/bold] {info['adapter']}")
    console.print(f"[bold]License:[/bold] {info['license']}")
    console.print(f"[bold]Stop sequences:[/bold] {escape(', '.join(info['stop_sequences']))}")
    console.print(f"[bold]Location:[/bold] {info['local_path']}")

    if info["ready"]:
        console.print(f"[bold]Size:[/bold] {info.get('size_gb', 'N/A')} GB")
        console.print("[bold]Status:[/bold] [green]Ready[/green]")
    else:
        console.print("[bold]Status:[/bold] [yellow]Not downloaded[/yellow]")
    console.print()


def handle_command(command: str, state: dict) -> bool:
    """
    Handle slash commands.

    Returns:
        True if should continue REPL, False to exit
    """
    cmd = command.strip()
    cmd_lower = cmd.lower()

    if cmd_lower in ("/quit", "/exit", "/q"):
        console.print("[dim]さようなら！Goodbye![/dim]")
        return False

    elif cmd_lower == "/help":
        print_help()

    elif cmd_lower.startswith("/to "):
        lang = cmd[4:].strip()
        if not is_valid_language(lang):
            console.print(f"[yellow]Unknown language: {lang}[/yellow]")
            console.print("[dim]Supported: ja, en[/dim]")
        else:
            state["force_target"] = Language.from_code(lang)
            console.print(f"[green]Output language set to: {get_language_name(state['force_target'])}[/green]")

    elif cmd_lower == "/to":
        console.print("[yellow]Usage: /to <language_code>[/yellow]")
        console.print("[dim]Example: /to en, /to ja[/dim]")

    elif cmd_lower == "/auto":
        state["force_target"] = None
        console.print("[green]Auto-detection re-enabled (ja ↔ en)[/green]")

    elif cmd_lower == "/model":
        print_model_status()

    elif cmd_lower == "/config":
        print_config(state.get("force_target"))

    elif cmd_lower == "/clear":
        console.clear()
        print_welcome(state["translator"])

    else:
        console.print(f"[yellow]Unknown command: {escape(command)}[/yellow]")
        console.print("[dim]Type /help for available commands.[/dim]")

    return True


def run_interactive(translator: Translator, force_target: Optional[Language] = None):
    """Run the interactive REPL."""
    config = get_config()
    state = {"translator": translator, "force_target": force_target}
    console.no_color = not config.colored_output

    print_welcome(translator)

    # Set up prompt with history
    history_file = DEFAULT_CONFIG_DIR / "history.txt"
    history_file.parent.mkdir(parents=True, exist_ok=True)

    session: PromptSession = PromptSession(
        history=FileHistory(str(history_file)),
        style=prompt_style,
    )

    while True:
        try:
            text = session.prompt("> ")

            if not text.strip():
                continue

            if text.startswith("/"):
                if not handle_command(text, state):
                    break
                continue

            try:
                source = detect_language(text.strip())
                target = state["force_target"] or get_target_language(source)

                if config.show_language_indicator:
                    indicator = format_language_indicator(source, target)
                    console.print(f"[dim]{indicator}[/dim] ", end="")

                result = run_translation(translator, text, source, target)
                console.print(result.translated_text, markup=False)

            except TranslationError as e:
                console.print(f"[red]Translation error: {escape(str(e))}[/red]")

        except KeyboardInterrupt:
            console.print()
            continue

        except EOFError:
            # Ctrl+D
            console.print("\n[dim]さようなら！Goodbye![/dim]")
            break


def load_translator(model_kind: Optional[str] = None) -> Translator:
    """Build and load the translator, exiting with a message on failure."""
    try:
        if model_kind:
            config = get_config()
            config.model_kind = model_kind
            translator = Translator.from_config(config)
        else:
            translator = get_translator()
        translator.load_model()
    except TranslationError as e:
        console.print(f"[red]Error loading model: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    return translator


def translate_single(
    text: str,
    force_target: Optional[Language] = None,
    force_source: Optional[Language] = None,
    model_kind: Optional[str] = None,
) -> str:
    """Translate a single text and return result."""
    translator = load_translator(model_kind)
    try:
        result = run_translation(translator, text, force_source, force_target)
    except TranslationError as e:
        console.print(f"[red]Translation error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    return result.translated_text


def parse_language_option(value: Optional[str], option: str) -> Optional[Language]:
    if not value:
        return None
    if not is_valid_language(value):
        console.print(f"[red]Invalid {option} language: {value}[/red]")
        console.print("[dim]Supported languages: ja, en[/dim]")
        raise typer.Exit(1)
    return Language.from_code(value)


def validate_model_option(model_kind: Optional[str]) -> None:
    if model_kind and model_kind not in ModelKind.values():
        console.print(f"[red]Invalid model kind: {model_kind}[/red]")
        console.print(f"[dim]Available kinds: {', '.join(ModelKind.values())}[/dim]")
        raise typer.Exit(1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    text: Optional[str] = typer.Option(
        None,
        help="Text to translate",
    ),
    to: Optional[str] = typer.Option(
        None,
        "--to", "-t",
        help="Force target language (ja or en)",
    ),
    source: Optional[str] = typer.Option(
        None,
        "--from", "-s",
        help="Source language (ja or en); auto-detected when omitted",
    ),
    model_kind: Optional[str] = typer.Option(
        None,
        "--model", "-m",
        help="Model kind to use (e.g. alma, elyza, qwen3_8b)",
    ),
    file: Optional[str] = typer.Option(
        None,
        "--file", "-f",
        help="Read text from file",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output", "-o",
        help="Write translation to file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show debug logging",
    ),
):
    """
    Translate text between Japanese and English using a local model.

    Run without arguments for interactive mode.

    Examples:

        localtranslate                          # Interactive mode

        localtranslate --text "Hello world"     # Translate text

        localtranslate --to ja --text "Hello"   # Force Japanese output

        localtranslate model list               # List registry models
    """
    setup_logging(verbose)

    # If a subcommand is being invoked, skip the main logic
    if ctx.invoked_subcommand is not None:
        return

    force_target = parse_language_option(to, "target")
    force_source = parse_language_option(source, "source")
    validate_model_option(model_kind)

    if file:
        try:
            with open(file, encoding="utf-8") as f:
                text = f.read().strip()
        except FileNotFoundError:
            console.print(f"[red]File not found: {file}[/red]")
            raise typer.Exit(1)

    if not text and not sys.stdin.isatty():
        text = sys.stdin.read().strip()

    # Single-shot mode
    if text:
        translation = translate_single(text, force_target, force_source, model_kind)

        if output:
            with open(output, "w", encoding="utf-8") as f:
                f.write(translation + "\n")
            console.print(f"[green]Translation written to {output}[/green]")
        else:
            print(translation)
        return

    # Interactive mode (default)
    if not sys.stdin.isatty():
        console.print("[yellow]Interactive mode requires a terminal.[/yellow]")
        console.print("[dim]Usage: localtranslate --text \"text to translate\"[/dim]")
        raise typer.Exit(1)

    run_interactive(load_translator(model_kind), force_target)


@app.command("text", hidden=False)
def translate_cmd(
    text: str = typer.Argument(..., help="Text to translate"),
    to: Optional[str] = typer.Option(
        None,
        "--to", "-t",
        help="Force target language (ja or en)",
    ),
    source: Optional[str] = typer.Option(
        None,
        "--from", "-s",
        help="Source language (ja or en); auto-detected when omitted",
    ),
    model_kind: Optional[str] = typer.Option(
        None,
        "--model", "-m",
        help="Model kind to use (e.g. alma, elyza, qwen3_8b)",
    ),
):
    """Translate text (alternative to the --text option)."""
    force_target = parse_language_option(to, "target")
    force_source = parse_language_option(source, "source")
    validate_model_option(model_kind)

    print(translate_single(text, force_target, force_source, model_kind))


@app.command("model")
def model_cmd(
    action: str = typer.Argument(
        "status",
        help="Action: status, list, langs",
    ),
    kind: Optional[str] = typer.Argument(
        None,
        help="Model kind for status (e.g. alma, elyza)",
    ),
):
    """Show registry models and the configured model."""
    if action == "status":
        validate_model_option(kind)
        try:
            print_model_status(ModelKind(kind) if kind else None)
        except ValueError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            raise typer.Exit(1)

    elif action == "list":
        table = Table(title="LocalTranslate Models")
        table.add_column("Name", style="cyan")
        table.add_column("Kind")
        table.add_column("License")
        table.add_column("Status")
        table.add_column("Disk Size")

        for m in list_models():
            status = "[green]✓ Downloaded[/green]" if m["downloaded"] else "[dim]Not downloaded[/dim]"
            disk_size = f"{m['actual_size_gb']} GB" if m["downloaded"] else m["size_description"]
            table.add_row(m["name"], m["kind"], m["license"], status, disk_size)

        console.print(table)

    elif action == "langs":
        print_languages()

    else:
        console.print(f"[red]Unknown action: {action}[/red]")
        console.print("[dim]Available actions: status, list, langs[/dim]")
        raise typer.Exit(1)


@app.command("init")
def init_cmd(
    force: bool = typer.Option(
        False,
        "--force", "-f",
        help="Overwrite existing config file",
    ),
):
    """Initialize configuration file with defaults."""
    config_path = DEFAULT_CONFIG_DIR / "config.yaml"

    if config_path.exists() and not force:
        console.print(f"[yellow]Config file already exists:[/yellow] {config_path}")
        console.print("[dim]Use --force to overwrite with defaults.[/dim]")
        raise typer.Exit(0)

    if config_path.exists() and force:
        config_path.unlink()

    create_default_config(config_path)
    console.print(f"[green]✓ Created config file:[/green] {config_path}")
    console.print("\n[bold]Default configuration:[/bold]")
    console.print("  Model: alma (ALMA-7B-Ja Q4_K_M)")
    console.print("  Languages: ja ↔ en (auto-detected)")
    console.print("  Runtime: context 4096, temperature 0.1, max tokens 2048")
    console.print(f"\n[dim]Edit {config_path} to customize.[/dim]")


if __name__ == "__main__":
    app()
