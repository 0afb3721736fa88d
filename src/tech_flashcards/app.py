"""Interactive CLI application."""
import logging
from functools import partial

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Confirm, IntPrompt, Prompt

from tech_flashcards.config import DEFAULT_DB_PATH, DEFAULT_USER_ID, LOG_LEVEL, SESSION_DECK_ALL
from tech_flashcards.db import init_db
from tech_flashcards.flashcards import (
    count_due, create_card, delete_card, get_deck_summary, list_decks, load_cards, reset_deck,
    save_card,
)
from tech_flashcards.models import CardNotFoundError, Rating
from tech_flashcards.seed import seed_all, is_seeded
from tech_flashcards.session import ReviewSession, start_session

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")
RATING_COLORS = {"again": "red", "hard": "dark_orange", "good": "green", "easy": "blue"}


class SessionExitRequested(Exception):
    """Raised when the learner leaves a study session early."""


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    while True:
        answer = session_prompt(prompt).strip()
        if answer in choices:
            return int(answer)
        console.print(f"[red]Please enter one of: {', '.join(choices)}[/red]")


def show_welcome():
    console.print(Panel(
        "[bold]Automotive Technician Flashcards[/bold]\n[dim]Spaced repetition drill[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu(deck: str):
    console.print(f"\n[bold]Commands:[/bold] [dim](deck: {deck})[/dim]")
    commands = [
        ("study", "Review due cards"),
        ("decks", "Deck overview / switch deck"),
        ("add", "Create a flashcard"),
        ("reset", "Reset progress for this deck"),
        ("delete", "Delete a flashcard"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<10}[/cyan] {desc}")


def format_previews(previews: dict[str, str]) -> str:
    parts = []
    for rating in Rating:
        color = RATING_COLORS[rating.key]
        parts.append(f"[{color}]{rating.value}) {rating.key.title()}[/{color}] [dim]{previews[rating.key]}[/dim]")
    return "   ".join(parts)


def show_session_summary(session: ReviewSession) -> None:
    table = Table(title="Session Complete")
    for rating in Rating:
        table.add_column(rating.key.title(), justify="right", style=RATING_COLORS[rating.key])
    stats = session.stats
    table.add_row(*(str(stats[r.key]) for r in Rating))
    console.print(table)
    console.print(f"[bold]You reviewed {session.total_reviewed} cards[/bold]"
                  + (f" [dim]({len(session.skipped)} skipped)[/dim]" if session.skipped else ""))


def run_review_session(session: ReviewSession) -> None:
    """Drive a session until every card has graduated or been skipped."""
    shown_warnings = 0
    console.print(f"\n[bold]Review Session[/bold] - {session.remaining} cards\n")
    while not session.is_complete:
        card = session.current
        title = f"{card.deck_name or 'Card'} - {session.remaining} left"
        console.print(Panel(card.front, title=title, border_style="cyan"))
        answer = session_prompt("[dim]Press Enter to reveal answer, 's' to skip[/dim]", default="", show_default=False)
        if answer.strip().lower() == "s":
            session.skip()
            console.print("[dim]Skipped.[/dim]\n")
            continue
        console.print(Panel(card.back, border_style="green"))
        console.print(format_previews(session.previews()))
        rating = session_int_prompt("Rate yourself", choices=[str(r.value) for r in Rating])
        session.rate(rating)
        for warning in session.warnings[shown_warnings:]:
            console.print(f"[yellow]{warning}[/yellow]")
        shown_warnings = len(session.warnings)
        console.print()
    show_session_summary(session)


def cmd_study(db_path: str, user_id: str, deck: str):
    cards = load_cards(db_path, user_id)
    session = start_session(cards, deck=deck, save=partial(save_card, db_path))
    if session is None:
        console.print("[yellow]No cards due for review in this deck![/yellow]")
        return
    with session:
        try:
            run_review_session(session)
        except SessionExitRequested:
            session.abandon()
            console.print(f"\n[dim]Session ended early after {session.total_reviewed} reviews.[/dim]")


def cmd_decks(db_path: str, user_id: str, deck: str) -> str:
    summary = get_deck_summary(db_path, user_id)
    table = Table(title="Decks")
    table.add_column("Deck", style="cyan")
    table.add_column("Cards", justify="right")
    table.add_column("Due", justify="right")
    table.add_column("Learning", justify="right")
    table.add_column("Graduated", justify="right")
    for row in summary:
        table.add_row(
            row["deck_name"] or "-", str(row["total"]), str(row["due"]),
            str(row["learning"]), str(row["graduated"]),
        )
    console.print(table)
    choices = [SESSION_DECK_ALL] + list_decks(db_path, user_id)
    return Prompt.ask("Study deck", choices=choices, default=deck)


def cmd_add(db_path: str, user_id: str, deck: str):
    front = Prompt.ask("Question")
    back = Prompt.ask("Answer")
    default_deck = deck if deck != SESSION_DECK_ALL else None
    deck_name = Prompt.ask("Deck", default=default_deck)
    try:
        create_card(db_path, user_id, front, back, deck_name)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print("[green]Flashcard created![/green]")


def cmd_reset(db_path: str, user_id: str, deck: str):
    if not Confirm.ask(f"Reset all progress in [bold]{deck}[/bold]?", default=False):
        return
    count = reset_deck(db_path, user_id, deck)
    console.print(f"[green]Reset {count} cards. {count_due(db_path, user_id, deck)} now due.[/green]")


def cmd_delete(db_path: str, user_id: str, deck: str):
    cards = load_cards(db_path, user_id, deck)
    if not cards:
        console.print("[yellow]No flashcards in this deck.[/yellow]")
        return
    table = Table(title="Flashcards")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Deck")
    table.add_column("Question")
    for card in cards:
        table.add_row(str(card.id), card.deck_name, card.front)
    console.print(table)
    card_id = IntPrompt.ask("Card to delete", choices=[str(c.id) for c in cards])
    if not Confirm.ask(f"Delete card [bold]{card_id}[/bold]? This cannot be undone.", default=False):
        return
    try:
        delete_card(db_path, user_id, card_id)
    except CardNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print("[green]Flashcard deleted[/green]")


def main():
    configure_logging()
    db_path = DEFAULT_DB_PATH
    user_id = DEFAULT_USER_ID
    init_db(db_path)
    first_run = not is_seeded(db_path, user_id)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
        seed_all(db_path, user_id)
        console.print("[green]Ready![/green]\n")

    show_welcome()
    deck = SESSION_DECK_ALL

    while True:
        show_menu(deck)
        choice = Prompt.ask("\n[bold]>[/bold]", default="study").strip().lower()
        try:
            if choice == "study":
                cmd_study(db_path, user_id, deck)
            elif choice == "decks":
                deck = cmd_decks(db_path, user_id, deck)
            elif choice == "add":
                cmd_add(db_path, user_id, deck)
            elif choice == "reset":
                cmd_reset(db_path, user_id, deck)
            elif choice == "delete":
                cmd_delete(db_path, user_id, deck)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Keep those wrenches turning![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
