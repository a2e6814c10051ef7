"""Display functions for copy commands - pure functions for Rich output."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ...content.models import ConfigurationModel, ContentNode, InputEvaluation
from ...content.store import SessionSnapshot
from ...content.styles import VoiceStyle
from ..core.types import CopyRunResult
from .params import CopyGenerationParams


def show_generation_config(
    console: Console,
    params: CopyGenerationParams,
    config: ConfigurationModel,
) -> None:
    """Display copy generation configuration panel."""
    target = config.target_word_count()
    target_info = f"{target} words" if target else "Not set"
    extras = [
        name
        for name, enabled in (
            ("score", config.generate_scores),
            ("SEO", config.generate_seo_metadata),
            ("GEO", config.generate_geo_score),
        )
        if enabled
    ]

    console.print(Panel(
        f"Generating copy from [cyan]{params.config_path.name}[/cyan]\n"
        f"Mode: [yellow]{config.mode.value}[/yellow]\n"
        f"Language: [yellow]{config.language}[/yellow] | Tone: [yellow]{config.tone}[/yellow]\n"
        f"Target: [yellow]{target_info}[/yellow]\n"
        f"Alternatives: [yellow]{params.alternatives}[/yellow]\n"
        f"Style: [yellow]{params.style or 'None'}[/yellow]\n"
        f"Extras: [yellow]{', '.join(extras) or 'None'}[/yellow]\n"
        f"Text AI: [yellow]{params.text_ai or config.model or 'default'}[/yellow]",
        title="Copy Generation",
    ))


def show_node(console: Console, node: ContentNode) -> None:
    """Display one generated node with its annotations."""
    lines = [escape(node.text), ""]
    meta = node.derivation_meta
    lines.append(f"[bold]Words:[/] {node.word_count}")
    if getattr(meta, "target_word_count", None):
        state = meta.loop_state.value if meta.loop_state else "n/a"
        lines.append(
            f"[bold]Target:[/] {meta.target_word_count} ({state}, {meta.attempts} attempt(s))"
        )
    if node.derived_from:
        lines.append(f"[bold]Derived from:[/] {node.derived_from}")
    if node.score:
        lines.append(f"[bold]Score:[/] {node.score.overall}/100")
    if node.geo_score:
        lines.append(f"[bold]GEO:[/] {node.geo_score.overall}/100")
    if node.seo_metadata:
        for item in node.seo_metadata.url_slugs[:1] + node.seo_metadata.meta_descriptions[:1]:
            style = "green" if item.within_limit else "red"
            lines.append(f"[bold]SEO:[/] {item.text} [{style}]({item.char_count}/{item.limit})[/{style}]")

    console.print(Panel(
        "\n".join(lines),
        title=f"{node.kind.value} [dim]{node.id}[/dim]",
        border_style="cyan",
    ))


def show_generation_result(console: Console, result: CopyRunResult) -> None:
    """Display every node and the run summary."""
    for node in result.nodes:
        show_node(console, node)

    summary = (
        f"[bold]Nodes:[/] {len(result.nodes)}\n"
        f"[bold]Tokens:[/] {result.total_tokens}\n"
        f"[bold]Cost:[/] ${result.total_cost_usd:.4f}"
    )
    if result.snapshot_path:
        summary += f"\n[bold]Saved to:[/] {result.snapshot_path}"

    if result.partial_error:
        console.print(Panel(
            f"[yellow]Completed with errors: {result.partial_error}[/yellow]\n\n{summary}",
            title="Partial",
            border_style="yellow",
        ))
    else:
        console.print(Panel(
            f"[bold green]Copy generated successfully![/bold green]\n\n{summary}",
            title="Complete",
            border_style="green",
        ))


def show_evaluation(console: Console, evaluation: InputEvaluation, field: Optional[str] = None) -> None:
    """Display the brief or single-field evaluation."""
    color = "green" if evaluation.score >= 70 else "yellow" if evaluation.score >= 40 else "red"
    tips = "\n".join(f"- {tip}" for tip in evaluation.tips) or "No suggestions"
    console.print(Panel(
        f"[bold]Score:[/] [{color}]{evaluation.score}/100[/{color}]\n\n{tips}",
        title=f"Evaluation: {field}" if field else "Input Evaluation",
    ))


def show_suggestions(console: Console, field: str, suggestions: list[str]) -> None:
    """Display numbered suggestions for one field."""
    lines = "\n".join(f"{i}. {escape(s)}" for i, s in enumerate(suggestions, 1))
    console.print(Panel(lines, title=f"Suggestions: {field}", border_style="cyan"))


def show_styles_table(console: Console, styles: list[VoiceStyle]) -> None:
    """Display table of voice styles."""
    table = Table(title="Voice Styles")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="yellow")
    table.add_column("Description", style="white")

    for style in styles:
        table.add_row(style.name, style.category.value, style.description)

    console.print(table)


def show_snapshot(console: Console, snapshot: SessionSnapshot) -> None:
    """Display a loaded snapshot summary and its nodes."""
    console.print(Panel(
        f"[bold]Kind:[/] {snapshot.kind.value}\n"
        f"[bold]Id:[/] {snapshot.id}\n"
        f"[bold]Saved:[/] {snapshot.saved_at:%Y-%m-%d %H:%M}\n"
        f"[bold]Brief:[/] {snapshot.brief_description or '-'}\n"
        f"[bold]Nodes:[/] {len(snapshot.nodes)}",
        title="Snapshot",
    ))
    for node in snapshot.nodes:
        show_node(console, node)


def show_copy_error(console: Console, error: str, details: Optional[dict] = None) -> None:
    """Display command error."""
    console.print(f"\n[red]Error: {error}[/red]")
    if details:
        for key, value in details.items():
            console.print(f"  [dim]{key}:[/dim] [yellow]{value}[/yellow]")
