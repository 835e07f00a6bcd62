"""
skilltree terminal front-end.

Commands:
    skilltree create <topic>           - Generate a new learning path
    skilltree paths                    - List your learning paths
    skilltree show <path>              - Node-by-node progress of a path
    skilltree study <path> <node>      - Flashcard sitting (--review for whole deck)
    skilltree exam <path> <node>       - Take a node exam
    skilltree extend <path>            - Grow a finished path with advanced nodes

Nodes may be given by id or by 1-based position in the path.
"""
from __future__ import annotations

import sys

import typer
from loguru import logger
from rich import box
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from skilltree.config import get_settings
from skilltree.core.errors import GenerationFailed, ProgressionError
from skilltree.learning.models import Path, Rating, StudyMode
from skilltree.learning.node_state import NodeStatus
from skilltree.learning.progression_service import ProgressionService
from skilltree.quiz.models import QuestionKind

console = Console()

app = typer.Typer(
    name="skilltree",
    help="Level-based learning paths: master flashcards, pass the exam, unlock the next node",
    no_args_is_help=True,
)

RATING_KEYS = {"h": Rating.HARD, "m": Rating.MEDIUM, "e": Rating.EASY}

STATUS_STYLES = {
    NodeStatus.LOCKED: "[dim]locked[/dim]",
    NodeStatus.READY: "[cyan]studying[/cyan]",
    NodeStatus.EXAM_READY: "[yellow]exam ready[/yellow]",
    NodeStatus.EXAM_IN_PROGRESS: "[magenta]exam[/magenta]",
    NodeStatus.COMPLETED: "[green]completed[/green]",
}


def _get_service() -> ProgressionService:
    """Lazy load the service so --help works without a database or API key."""
    from skilltree.db.sql_store import SqlProgressStore
    from skilltree.generation.content_producer import GeminiContentProducer
    from skilltree.learning.policy import ProgressionPolicy
    from skilltree.learning.rewards import DailyStreakRewards

    settings = get_settings()
    if not settings.has_ai_configured():
        logger.warning("GEMINI_API_KEY is not set; commands that generate content will fail")
    return ProgressionService(
        store=SqlProgressStore(),
        producer=GeminiContentProducer(),
        policy=ProgressionPolicy.from_settings(settings),
        rewards=DailyStreakRewards(amount=settings.daily_reward_amount),
    )


def _learner(learner: str | None) -> str:
    return learner or get_settings().default_learner_id


def _resolve_node(path: Path, node_ref: str) -> str:
    """Accept a node id or a 1-based position."""
    if path.find_node(node_ref) is not None:
        return node_ref
    if node_ref.isdigit() and 1 <= int(node_ref) <= len(path.nodes):
        return path.nodes[int(node_ref) - 1].id
    raise ProgressionError(f"No node '{node_ref}' in path {path.id}")


def _fail(error: Exception) -> None:
    if isinstance(error, GenerationFailed):
        rprint(f"[red]AI generation failed:[/red] {error.reason}")
        rprint("[dim]Check SKILLTREE settings (GEMINI_API_KEY) and try again.[/dim]")
    else:
        rprint(f"[red]Error:[/red] {error}")
    raise typer.Exit(code=1)


@app.command("create")
def create_path(
    topic: str = typer.Argument(..., help="What you want to learn"),
    level: str = typer.Option("Beginner", "--level", help="Beginner, Intermediate or Advanced"),
    goal: str = typer.Option("", "--goal", help="What you want to achieve"),
    time: str = typer.Option("30 minutes", "--time", help="Daily study commitment"),
    title: str | None = typer.Option(None, "--title", help="Path title (defaults to topic)"),
    learner: str | None = typer.Option(None, "--learner", help="Learner id"),
) -> None:
    """Generate a new learning path for a topic."""
    service = _get_service()
    try:
        with console.status("Designing your learning path..."):
            path = service.create_path(_learner(learner), topic, level, goal, time, title=title)
    except ProgressionError as e:
        _fail(e)
        return

    rprint(f"[green]Created[/green] [bold]{path.title}[/bold] ({path.id}) with {len(path.nodes)} nodes")
    _print_path(service, _learner(learner), path)


@app.command("paths")
def list_paths(
    learner: str | None = typer.Option(None, "--learner", help="Learner id"),
) -> None:
    """List your learning paths."""
    service = _get_service()
    try:
        paths = service.list_paths(_learner(learner))
    except ProgressionError as e:
        _fail(e)
        return

    if not paths:
        rprint("[yellow]No learning paths yet.[/yellow] Run [cyan]skilltree create <topic>[/cyan]")
        return

    table = Table(box=box.SIMPLE)
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Level")
    table.add_column("Progress", justify="right")

    for path in paths:
        done = sum(1 for n in path.nodes if n.completed)
        table.add_row(path.id, path.title, path.target_level, f"{done}/{len(path.nodes)}")

    console.print(table)


@app.command("show")
def show_path(
    path_id: str = typer.Argument(..., help="Learning path id"),
    learner: str | None = typer.Option(None, "--learner", help="Learner id"),
) -> None:
    """Show node-by-node progress of a path."""
    service = _get_service()
    try:
        path = service.get_path(_learner(learner), path_id)
    except ProgressionError as e:
        _fail(e)
        return
    _print_path(service, _learner(learner), path)


def _print_path(service: ProgressionService, learner_id: str, path: Path) -> None:
    threshold = service.policy.mastery_threshold

    table = Table(title=f"{path.title} ({path.target_level})", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Node", style="bold")
    table.add_column("Kind")
    table.add_column("Status")
    table.add_column("Mastered", justify="right")
    table.add_column("Exam", justify="right")

    for i, node in enumerate(path.nodes, start=1):
        status = service.node_status(learner_id, path.id, node.id)
        score = f"{node.exam_score:.0f}%" if node.exam_score is not None else "--"
        table.add_row(
            str(i),
            node.title,
            node.kind.value,
            STATUS_STYLES[status],
            f"{node.mastered_count}/{threshold}",
            score,
        )

    console.print(table)


@app.command("study")
def study(
    path_id: str = typer.Argument(..., help="Learning path id"),
    node_ref: str = typer.Argument(..., help="Node id or position"),
    review: bool = typer.Option(False, "--review", help="Review the whole deck"),
    learner: str | None = typer.Option(None, "--learner", help="Learner id"),
) -> None:
    """Run a flashcard sitting until every card is rated easy."""
    service = _get_service()
    learner_id = _learner(learner)
    mode = StudyMode.REVIEW if review else StudyMode.NEW

    try:
        path = service.get_path(learner_id, path_id)
        node_id = _resolve_node(path, node_ref)
        with console.status("Preparing flashcards..."):
            queue = service.start_session(learner_id, path_id, node_id, mode)
    except ProgressionError as e:
        _fail(e)
        return

    rprint(f"[bold]{len(queue)}[/bold] cards in this sitting. Rate: [red]h[/red]ard, "
           f"[yellow]m[/yellow]edium, [green]e[/green]asy, [dim]q to stop[/dim]")

    result = None
    while not queue.is_empty:
        card = queue.head
        console.print(Panel(card.front, title=f"[cyan]{len(queue)} left[/cyan]", box=box.HEAVY))
        Prompt.ask("[dim]Enter to flip[/dim]", default="", show_default=False)
        console.print(Panel(card.back, border_style="green"))

        choice = Prompt.ask("Rating", choices=["h", "m", "e", "q"], default="e")
        if choice == "q":
            rprint("[yellow]Sitting stopped. Progress so far is saved.[/yellow]")
            return

        try:
            result = service.rate_card(queue, card.id, RATING_KEYS[choice])
        except ProgressionError as e:
            _fail(e)
            return

        if result.exam_unlocked_now:
            rprint(f"[bold yellow]Exam unlocked![/bold yellow] {result.mastered_count} cards mastered.")

    rprint(f"[green]Sitting complete![/green] {queue.initial_size} cards, +{queue.session_xp} XP")
    if result is not None and result.daily_reward:
        rprint("[bold cyan]Daily reward earned![/bold cyan]")


@app.command("exam")
def exam(
    path_id: str = typer.Argument(..., help="Learning path id"),
    node_ref: str = typer.Argument(..., help="Node id or position"),
    learner: str | None = typer.Option(None, "--learner", help="Learner id"),
) -> None:
    """Take the exam for a node whose flashcards are mastered."""
    service = _get_service()
    learner_id = _learner(learner)

    try:
        path = service.get_path(learner_id, path_id)
        node_id = _resolve_node(path, node_ref)
        with console.status("Writing your exam..."):
            attempt = service.start_exam(learner_id, path_id, node_id)
    except ProgressionError as e:
        _fail(e)
        return

    total = len(attempt.questions)
    for number, question in enumerate(attempt.questions, start=1):
        body = question.prompt
        if question.kind == QuestionKind.MCQ:
            body += "\n\n" + "\n".join(
                f"[{i + 1}] {option}" for i, option in enumerate(question.options)
            )
        console.print(Panel(body, title=f"[cyan]{number}/{total} {question.kind.value}[/cyan]"))

        raw = Prompt.ask("Answer")
        answer = raw
        if question.kind == QuestionKind.MCQ and raw.strip().isdigit():
            answer = str(int(raw.strip()) - 1)

        outcome = service.answer_question(attempt, question.id, answer)
        if outcome.is_correct:
            combo = f" combo x{outcome.combo_now}" if outcome.combo_now > 1 else ""
            rprint(f"[green]Correct![/green] +{outcome.xp_awarded} XP{combo}")
        else:
            rprint(f"[red]Incorrect.[/red] Expected: {outcome.expected_answer}")
        if outcome.explanation:
            rprint(f"[dim]{outcome.explanation}[/dim]")

    try:
        result = service.finish_exam(attempt)
    except ProgressionError as e:
        _fail(e)
        return

    verdict = "[green]PASSED[/green]" if result.passed else "[red]Not yet[/red]"
    console.print(Panel(
        f"{verdict}  {result.score_percent}% ({result.correct_count}/{result.total_questions})\n"
        f"Session XP: {result.session_xp}",
        title="Exam result",
    ))
    if result.path_extendable:
        rprint(f"[bold]Path finished![/bold] Run [cyan]skilltree extend {path_id}[/cyan] for advanced levels")


@app.command("extend")
def extend(
    path_id: str = typer.Argument(..., help="Learning path id"),
    learner: str | None = typer.Option(None, "--learner", help="Learner id"),
) -> None:
    """Append advanced nodes to a path whose last node is completed."""
    service = _get_service()
    learner_id = _learner(learner)
    try:
        with console.status("Expanding the map..."):
            new_nodes = service.extend_path(learner_id, path_id)
        path = service.get_path(learner_id, path_id)
    except ProgressionError as e:
        _fail(e)
        return

    rprint(f"[green]Added {len(new_nodes)} nodes.[/green]")
    _print_path(service, learner_id, path)


# =============================================================================
# Entry Point
# =============================================================================

def configure_logging(level: str, log_file: str | None = None) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if log_file:
        logger.add(log_file, level="DEBUG", rotation="10 MB", retention=5)


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    # Interactive use: keep the terminal quiet unless debugging
    configure_logging("WARNING" if settings.log_level == "INFO" else settings.log_level, settings.log_file)
    app()


if __name__ == "__main__":
    main()
