"""Rich terminal rendering for the CLI."""
from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ash_aether.content.validator import ContentValidationResult
from ash_aether.models.quest import QuestStatus
from ash_aether.models.session import HudViewModel, QuestUiEntry
from ash_aether.storage.repos.save_slot_repo import CORRUPTED, SaveSlotInfo

console = Console()

_STATUS_STYLES = {
    QuestStatus.LOCKED: "dim",
    QuestStatus.AVAILABLE: "cyan",
    QuestStatus.ACTIVE: "bold yellow",
    QuestStatus.COMPLETED: "green",
    QuestStatus.FAILED: "red",
}


class Display:
    def __init__(self, width: int = 80):
        self.console = console
        self.width = width

    def show_error(self, message: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {message}")

    def show_info(self, message: str) -> None:
        self.console.print(f"[bold blue]Info:[/bold blue] {message}")

    def show_success(self, message: str) -> None:
        self.console.print(f"[bold green]{message}[/bold green]")

    def show_validation_result(self, result: ContentValidationResult) -> None:
        if not result.ok:
            self.console.print(f"[bold red]Content validation failed ({len(result.errors)} errors):[/bold red]")
            for error in result.errors:
                self.console.print(f"  - {error}", markup=False, highlight=False)
            return

        table = Table(title="Content Bundle", box=box.ROUNDED, border_style="cyan")
        table.add_column("Category", style="bold")
        table.add_column("Records", justify="right")
        for category, count in result.parsed.counts().items():
            table.add_row(category, str(count))
        self.console.print(table)
        self.show_success("Content validation passed.")

    def show_save_slots(self, slots: list[SaveSlotInfo]) -> None:
        table = Table(title="Save Slots", box=box.ROUNDED, border_style="cyan")
        table.add_column("Slot", style="bold")
        table.add_column("Saved")
        for info in slots:
            if not info.exists:
                saved = "[dim]empty[/dim]"
            elif info.timestamp == CORRUPTED:
                saved = "[red]corrupted[/red]"
            else:
                saved = info.timestamp or "?"
            table.add_row(str(info.slot), saved)
        self.console.print(table)

    def show_hud(self, hud: HudViewModel) -> None:
        content = Text()
        content.append(f"Level {hud.level}", style="bold yellow")
        content.append(f"  XP {hud.xp}/{hud.xp_to_next}\n")
        content.append(f"HP {hud.hp}/{hud.max_hp}", style="red")
        content.append(f"  Stamina {hud.stamina}/{hud.max_stamina}", style="green")
        content.append(f"  Cinders {hud.cinders}\n", style="yellow")
        content.append(f"Stance: {hud.active_weapon_mode.value}\n")
        content.append(f"Hint: {hud.quest_hint}\n", style="italic")
        content.append("Quickbar: " + " | ".join(hud.quickbar) + "\n", style="dim")
        if hud.events:
            content.append("\nRecent:\n", style="bold")
            for event in hud.events:
                content.append(f"  {event}\n")
        self.console.print(Panel(content, title="Warden", border_style="green", box=box.ROUNDED, width=self.width))

    def show_quest_journal(self, entries: list[QuestUiEntry]) -> None:
        table = Table(title="Quest Journal", box=box.ROUNDED, border_style="cyan")
        table.add_column("Quest", style="bold")
        table.add_column("Status")
        table.add_column("Objectives")
        for entry in entries:
            objectives = "\n".join(
                f"{o.description} ({o.progress}/{o.required})" for o in entry.objectives
            )
            style = _STATUS_STYLES.get(entry.status, "")
            table.add_row(entry.title, f"[{style}]{entry.status.value}[/{style}]", objectives)
        self.console.print(table)
