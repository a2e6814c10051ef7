"""AI and operation progress display for CLI.

Shows real-time progress with:
- Operation phases and log messages
- Provider and model being used, duration of each call
- Failed providers (if any)

Usage:
    display = AIProgressDisplay(console)
    gateway = TextProvider(event_callback=display.handle_event)
    orchestrator = ContentOrchestrator(gateway, progress_callback=display.handle_progress)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rich.console import Console

from ...services.progress import GenerationProgress


@dataclass
class AICallStats:
    """Statistics for AI calls during a command run."""

    total_calls: int = 0
    total_duration: float = 0.0
    total_cost: float = 0.0
    total_tokens: int = 0
    failed_calls: int = 0
    failed_providers: list[str] = field(default_factory=list)


class AIProgressDisplay:
    """Display progress in CLI.

    Event types handled:
    - text_call: AI call starting
    - text_response: AI call completed
    - text_error: AI call failed
    """

    def __init__(self, console: Console, verbose: bool = True):
        self.console = console
        self.verbose = verbose
        self.stats = AICallStats()
        self._printed_messages = 0

    async def handle_event(self, event: dict[str, Any]) -> None:
        """Handle an AI event from TextProvider."""
        event_type = event.get("type", "")

        if event_type == "text_call":
            if self.verbose:
                self.console.print(
                    f"  [cyan][AI][/cyan] {event.get('provider', 'unknown')}/"
                    f"{self._shorten_model_name(event.get('model', 'unknown'))}..."
                )
        elif event_type == "text_response":
            self.stats.total_calls += 1
            self.stats.total_duration += event.get("duration_seconds", 0.0)
            self.stats.total_tokens += event.get("tokens_used", 0)
            self.stats.total_cost += event.get("cost_usd", 0.0)
            if self.verbose:
                self.console.print(
                    f"  [green]OK[/green] [dim]{event.get('duration_seconds', 0.0):.1f}s, "
                    f"{event.get('tokens_used', 0)} tokens[/dim]"
                )
        elif event_type == "text_error":
            self.stats.failed_calls += 1
            provider = event.get("provider", "unknown")
            if provider not in self.stats.failed_providers:
                self.stats.failed_providers.append(provider)
            self.console.print(
                f"  [red]FAILED[/red] {provider} [dim]({event.get('kind', '')}: {event.get('error', '')})[/dim]"
            )

    async def handle_progress(self, progress: GenerationProgress) -> None:
        """Print progress log lines not shown yet."""
        if len(progress.messages) < self._printed_messages:
            self._printed_messages = 0
        for message in progress.messages[self._printed_messages:]:
            self.console.print(f"[dim]>[/dim] {message}")
        self._printed_messages = len(progress.messages)

    @staticmethod
    def _shorten_model_name(model: str) -> str:
        if "/" in model:
            model = model.split("/")[-1]
        return model[:30] + "..." if len(model) > 30 else model
