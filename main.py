"""
Main entry point for Focusly.

Interactive console for building a learning roadmap with Gemini, tracking
mastery and running focus sessions against roadmap nodes.
"""

import asyncio
import contextlib
import logging

from focusly.config import settings
from focusly.controller import FocuslyController
from focusly.engine.events import BreakFinished, NodeMastered, SessionCompleted
from focusly.engine.timer import format_time
from focusly.models.schema import LearningNode
from focusly.tools.provider import ProviderError

logging.basicConfig(level=settings.log_level, format="%(name)s | %(message)s")

#suppress noisy loggers
logging.getLogger("google").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger("cli")

HELP = """  Commands:
    new <topic>            generate a fresh roadmap
    add <title>            capture a signal node
    noise <title>          capture a noise node
    drill <n>              generate sub-nodes under node n
    master <n>             toggle mastery of node n
    type <n>               toggle signal/noise on node n
    delete <n>             delete node n
    content <n> [0-100]    fetch deep content for node n
    focus <n>              run a focus session on node n
    break                  take a break
    streak                 log today's engagement
    stats                  show statistics
    signal                 toggle hiding noise nodes
    clear                  drop the roadmap and topic
    quit"""

STATUS_MARKS = {"locked": "·", "available": "○", "in-progress": "◐", "mastered": "●"}


def print_banner(title: str):
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print()


def ordered_nodes(controller: FocuslyController) -> list[LearningNode]:
    """Nodes in display order: the horizontal band, then the vertical band."""
    horizontal, vertical = controller.store.grouped_nodes(controller.hide_noise)
    return horizontal + vertical


def print_node(i: int, node: LearningNode):
    mark = STATUS_MARKS.get(node.status, "?")
    depth = f" d{node.depth}" if node.depth else ""
    tag = "" if node.type == "signal" else " [noise]"
    poms = f" {node.pomodoros_spent}p" if node.pomodoros_spent else ""
    print(f"  {i:>3} {mark} {node.title} (Lvl {node.difficulty_level}{depth}){tag}{poms}")


def print_roadmap(controller: FocuslyController) -> list[LearningNode]:
    horizontal, vertical = controller.store.grouped_nodes(controller.hide_noise)
    topic = controller.store.topic or "(no topic)"
    view = "Signal Only" if controller.hide_noise else "Signal + Noise"

    print()
    print(f"  Mission: {topic}  [{view}]")
    print("  " + "-" * 56)
    if not horizontal and not vertical:
        print("  No nodes yet. Try: new <topic>")

    i = 1
    for band, nodes in (("Horizontal foundations", horizontal), ("Vertical depth", vertical)):
        if not nodes:
            continue
        print(f"  {band}:")
        for node in nodes:
            print_node(i, node)
            i += 1
    print()
    return horizontal + vertical


def print_content(node: LearningNode):
    content = node.deep_content
    if content is None:
        return

    print_banner(node.title)
    print(f"  {content.executive_summary}")
    print()
    print("  Technical mechanics:")
    for i, step in enumerate(content.technical_mechanics, start=1):
        print(f"    {i}. {step}")
    print("  Minute details:")
    for item in content.minute_details:
        print(f"    - {item}")
    print(f"  Mental model: {content.expert_mental_model}")
    print("  Common pitfalls:")
    for item in content.common_pitfalls:
        print(f"    - {item}")
    print(f"  ELI7: {content.eli7}")
    if content.playground:
        print(f"  Playground ({content.playground.type}): {content.playground.prompt}")
    print()


def print_stats(controller: FocuslyController):
    s = controller.stats.stats
    print_banner("Statistics")
    print(f"  Distilled signal:   {s.total_nodes_mastered} nodes mastered")
    print(f"  Focus streak:       {s.daily_streak} days")
    print(f"  Invested time:      {round(s.total_focus_hours)}h ({s.total_focus_hours:.2f}h)")
    print(f"  Sessions this run:  {controller.timer.state.total_sessions}")
    series = controller.stats.chart_series()
    if series:
        print()
        print("  Mastery history:")
        for date, count in series[-7:]:
            print(f"    {date}  {'█' * count} {count}")
    print()


async def stop_runner(runner: asyncio.Task):
    """Cancel a timer loop and surface anything it raised."""
    runner.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await runner


async def prompt(text: str) -> str:
    return (await asyncio.to_thread(input, text)).strip()


async def run_focus(controller: FocuslyController, node: LearningNode):
    timer = controller.timer
    timer.start_focus(node.id)

    print_banner(f"Deep Work: {node.title}")
    print("  [enter] show time   p = pause/resume   x or Ctrl-C = exit")

    runner = asyncio.create_task(timer.run())
    try:
        while True:
            cmd = (await prompt("  focus > ")).lower()

            if timer.state.status == "completed":
                break
            if cmd == "x":
                break
            if cmd == "p":
                timer.toggle()
                if timer.is_running and runner.done():
                    await stop_runner(runner)
                    runner = asyncio.create_task(timer.run())
                print("  Paused." if timer.is_paused else "  Resumed.")

            print(f"  {format_time(timer.state.time_left)} left ({timer.progress:.0f}%)")
    finally:
        timer.exit()
        await stop_runner(runner)


async def run_break(controller: FocuslyController):
    timer = controller.timer
    if not timer.start_break():
        print("  Finish or exit the current session first.")
        return

    print(f"  Break: {format_time(timer.state.time_left)}. Press enter to skip.")
    runner = asyncio.create_task(timer.run())
    try:
        await prompt("")
    finally:
        timer.exit()
        await stop_runner(runner)


def resolve(nodes: list[LearningNode], arg: str) -> LearningNode | None:
    try:
        index = int(arg.split()[0]) - 1
    except (ValueError, IndexError):
        return None
    if 0 <= index < len(nodes):
        return nodes[index]
    return None


async def handle(controller: FocuslyController, nodes: list[LearningNode], command: str, arg: str):
    store = controller.store

    if command == "new":
        print(f"  Architecting roadmap for {arg!r}...")
        await store.create_roadmap(arg)
    elif command in ("add", "noise"):
        store.add_manual_node(arg, "noise" if command == "noise" else "signal")
    elif command == "signal":
        controller.toggle_noise_filter()
    elif command == "clear":
        store.clear()
    elif command == "stats":
        print_stats(controller)
        return
    elif command == "streak":
        controller.bump_streak()
    elif command == "break":
        await run_break(controller)
    elif command in ("drill", "master", "type", "delete", "content", "focus"):
        node = resolve(nodes, arg)
        if node is None:
            print("  No such node.")
            return
        if command == "drill":
            print(f"  Drilling into {node.title!r}...")
            await store.drill_down(node.id)
        elif command == "master":
            store.toggle_mastery(node.id)
        elif command == "type":
            store.toggle_type(node.id)
        elif command == "delete":
            store.delete_node(node.id)
        elif command == "content":
            parts = arg.split()
            complexity = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else None
            print(f"  Dissecting {node.title!r}...")
            await store.fetch_deep_content(node.id, complexity)
            print_content(node)
            return
        elif command == "focus":
            await run_focus(controller, node)
    else:
        print(HELP)
        return

    print_roadmap(controller)


async def main():
    print_banner("Focusly -- Path Architect")

    controller = FocuslyController()
    controller.events.subscribe(NodeMastered, lambda e: print(f"  ★ Mastered: {e.title}"))
    controller.events.subscribe(
        SessionCompleted,
        lambda e: print(f"\n  Session {e.total_sessions} complete! Press enter to continue."),
    )
    controller.events.subscribe(BreakFinished, lambda e: print("\n  Break over. Press enter."))

    if not settings.gemini_api_key:
        print("  WARNING: FOCUSLY_GEMINI_API_KEY is not set; generation will fail.")

    print(HELP)
    nodes = print_roadmap(controller)

    while True:
        line = await prompt("  > ")
        if not line:
            continue
        command, _, arg = line.partition(" ")
        command = command.lower()
        if command in ("quit", "exit", "q"):
            break

        try:
            await handle(controller, nodes, command, arg.strip())
        except ProviderError as e:
            logger.warning(f"{command} failed: {e}")
            print(f"  {e.user_message}")

        nodes = ordered_nodes(controller)

    print()
    print("  Progress saved. Bye.")


def cli():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        #every change is saved as it happens
        print()
        print("  Progress saved. Bye.")


if __name__ == "__main__":
    cli()
