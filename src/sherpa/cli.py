"""Command-line interface for sherpa."""

import asyncio
import json
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import click
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.theme import Theme

from .ai.config import get_llm_config_from_env, get_name_for_model, get_provider_for_model
from .ai.host import Host
from .ai.models.common import Message, MessageRole
from .core.errors import SherpaError
from .core.models import Config
from .tools.manager import MCPManager
from .utils.git import clone_repository, is_git_url
from .utils.logging_config import LogContext, configure_logging

SHERPA_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "highlight": "bold cyan",
    "path": "magenta",
    "tool": "yellow",
    "prompt": "bold green",
})

QUIT_COMMANDS = ("/quit", "/exit")
CLEAR_COMMAND = "/clear"


def setup_logging(debug: bool, log_file: Optional[Path] = None) -> None:
    """Configure logging based on debug flag; ``log_file`` adds a JSON log."""
    if debug:
        level = "DEBUG"
    else:
        level = "INFO" if log_file else "WARNING"
    configure_logging(level=level, console_output=debug, log_file=log_file)


def resolve_model_settings(provider: Optional[str], model: Optional[str], api_key: Optional[str],
                           env: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge command-line model options with the environment defaults.

    A catalog model given without a provider selects its vendor. Environment
    model, key and endpoint only apply when the chosen provider is the
    environment's provider.
    """
    provider = provider or get_provider_for_model(model) or env["provider"]
    base_url = None
    if provider.lower() == env["provider"]:
        model = model or env["model"]
        api_key = api_key or env["api_key"]
        base_url = env["base_url"]
    return {"provider": provider, "model": model, "api_key": api_key, "base_url": base_url}


class ConsoleRenderer:
    """Prints streamed answers and tool activity."""

    def __init__(self, console: Console, debug: bool = False):
        self.console = console
        self.debug = debug
        self._mid_line = False

    def on_text(self, chunk: str) -> None:
        self.console.print(chunk, end="", markup=False, highlight=False)
        self._mid_line = not chunk.endswith("\n")

    def finish(self) -> None:
        """End a partially printed line."""
        if self._mid_line:
            self.console.print()
            self._mid_line = False

    def on_message(self, message: Message) -> None:
        if message.role == MessageRole.ASSISTANT:
            self.finish()
            for call in message.tool_calls():
                args = escape(json.dumps(call.args))
                self.console.print(f"[tool]> {call.tool_name}[/tool] [dim]{args}[/dim]", highlight=False)
        elif message.role == MessageRole.TOOL and self.debug:
            for result in message.tool_results():
                text = str(result.result)
                first_line = escape(text.splitlines()[0]) if text else ""
                self.console.print(
                    f"[dim]< {result.tool_name}: {first_line} ({len(text)} chars)[/dim]",
                    markup=True, highlight=False,
                )


async def resolve_target(target: str, config: Config, console: Console) -> Path:
    """Local directory to work on; git URLs are cloned into the cache first."""
    if is_git_url(target):
        console.print(f"[info]> CLONING[/info] [path]{target}[/path]")
        return await clone_repository(target, config.cache_directory)

    path = Path(target).expanduser().resolve()
    if not path.is_dir():
        raise click.BadParameter(f"{target} is not a directory or git URL", param_hint="TARGET")
    return path


async def ask(host: Host, renderer: ConsoleRenderer, prompt: str,
              history: List[Message], files: Sequence[str]) -> List[Message]:
    """Run one query and return the extended conversation."""
    result = await host.process_query(
        prompt,
        previous_messages=history,
        user_files=list(files) if not history else None,
        on_message=renderer.on_message,
        on_text=renderer.on_text,
    )
    renderer.finish()
    return result.messages


async def interactive_loop(host: Host, renderer: ConsoleRenderer, files: Sequence[str]) -> None:
    console = renderer.console
    console.print("[dim]Ask about the codebase. /clear starts over, /quit exits.[/dim]")
    history: List[Message] = []

    while True:
        user_input = (await asyncio.to_thread(Prompt.ask, "\n[prompt]>[/prompt]", console=console)).strip()

        if not user_input:
            continue
        if user_input.lower() in QUIT_COMMANDS:
            break
        if user_input.lower() == CLEAR_COMMAND:
            history = []
            console.print("[info]Conversation cleared.[/info]")
            continue

        try:
            history = await ask(host, renderer, user_input, history, files)
        except SherpaError as e:
            # History is left as it was before the failed query
            console.print(f"\n[error]> QUERY FAILED:[/error] {e}")


async def run_session(console: Console, target: str, provider: Optional[str], model: Optional[str],
                      api_key: Optional[str], files: Sequence[str], query: Optional[str],
                      mcp_config: Optional[Path], config: Config, debug: bool) -> None:
    directory = await resolve_target(target, config, console)
    console.print(f"[highlight]> REPOSITORY:[/highlight] [path]{directory}[/path]")

    manager = MCPManager(mcp_config or config.mcp_config_path, handshake_timeout=config.handshake_timeout)
    host: Optional[Host] = None
    try:
        external_clients = await manager.initialize()
        host = await Host.create(directory, external_clients=external_clients, config=config)

        settings = resolve_model_settings(provider, model, api_key, get_llm_config_from_env(config))
        adapter = host.set_model(**settings)

        display_name = get_name_for_model(adapter.model)
        label = f" ({display_name})" if display_name else ""
        console.print(f"[info]> MODEL:[/info] {adapter.provider_name}/{adapter.model}{label}")
        console.print(f"[info]> TOOLS:[/info] {', '.join(host.registry.names())}")

        renderer = ConsoleRenderer(console, debug=debug)
        if query:
            await ask(host, renderer, query, [], files)
        else:
            await interactive_loop(host, renderer, files)
    finally:
        if host is not None:
            await host.cleanup()
        await manager.cleanup()


@click.command()
@click.argument('target', required=True)
@click.option('--provider', '-p', help='Model provider: anthropic, openai, gemini, deepseek or vllm')
@click.option('--model', '-m', help='Model id (defaults to the provider default)')
@click.option('--api-key', help='API key for the provider (defaults to <PROVIDER>_API_KEY)')
@click.option('--file', '-f', 'files', multiple=True, help='File to read before the first answer (repeatable)')
@click.option('--query', '-q', help='Ask one question and exit instead of starting a chat')
@click.option('--mcp-config', type=click.Path(dir_okay=False, path_type=Path),
              help='Tool provider config (default: ~/.config/sherpa/mcp_servers.json)')
@click.option('--log-file', type=click.Path(dir_okay=False, path_type=Path),
              help='Also write JSON logs to this file')
@click.option('--max-rounds', type=int, help='Maximum model calls per question')
@click.option('--debug', is_flag=True, help='Show debug logs and tool results')
@click.version_option(package_name='sherpa-code')
def main(target: str, provider: Optional[str], model: Optional[str], api_key: Optional[str],
         files: Sequence[str], query: Optional[str], mcp_config: Optional[Path],
         max_rounds: Optional[int], log_file: Optional[Path], debug: bool) -> None:
    """
    Ask questions about a codebase.

    TARGET can be:
    - Local directory path: /path/to/repo or .
    - Git URL: https://github.com/owner/repo or git@github.com:owner/repo.git

    Examples:

        sherpa . -q "Where is the config loaded?"

        sherpa https://github.com/pallets/click --provider gemini

        sherpa ~/src/app -f README.md -f setup.py
    """
    console = Console(theme=SHERPA_THEME)
    setup_logging(debug, log_file)

    config = Config()
    if max_rounds:
        config.max_tool_rounds = max_rounds

    try:
        with LogContext(session_id=uuid.uuid4().hex[:8]):
            asyncio.run(run_session(console, target, provider, model, api_key, files,
                                    query, mcp_config, config, debug))

    except KeyboardInterrupt:
        console.print("\n[error]> PROCESS TERMINATED BY USER[/error]")
        sys.exit(1)

    except click.ClickException:
        raise

    except Exception as e:
        console.print(f"\n[error]> CRITICAL ERROR:[/error] {str(e)}")
        if debug:
            console.print_exception()
        sys.exit(1)


if __name__ == '__main__':
    main()
