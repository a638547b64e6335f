#!/usr/bin/env python3
"""
Wayfinder Interactive CLI

A command-line interface for chatting with the venue assistant and
inspecting its tool calls.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from .agent import create_agent, load_venue_map
from .config import config
from .errors import ProviderError
from .models import history_to_list
from .orchestration import OrchestrationLoop
from .tracing import init_tracing_client, shutdown_tracing

logger = logging.getLogger(__name__)

HELP_TEXT = """
Available commands:
  /help     - Show this help message
  /tools    - List available tools
  /history  - Show the conversation history
  /trace    - Show the trace of the last turn
  /clear    - Clear conversation history
  /quit     - Exit the CLI

Ask about places in the venue below.
"""


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner(venue_name: str) -> None:
    """Print the welcome banner."""
    print()
    print("═" * 70)
    print(f"  Wayfinder Interactive - {venue_name}")
    print("═" * 70)
    print(HELP_TEXT)


def print_tools(agent: OrchestrationLoop) -> None:
    print("\nAvailable Tools:")
    print("─" * 70)
    print(agent.registry.get_tools_summary())
    print()


def print_history(agent: OrchestrationLoop) -> None:
    messages = history_to_list(agent.get_history())
    if not messages:
        print("\nHistory is empty.\n")
        return
    print()
    print(json.dumps(messages, indent=2, default=str))
    print()


def print_trace(agent: OrchestrationLoop) -> None:
    """Print the trace of the last turn."""
    trace = agent.get_trace()
    if not trace:
        print("\nNo trace available. Ask something first.\n")
        return

    print("\n" + "═" * 70)
    print("TURN TRACE")
    print("═" * 70)

    for record in trace:
        final = record["final_text"] is not None
        tools = "" if record["offered_tools"] else "  (no tools offered)"
        print(f"\n┌─ Iteration {record['iteration']}" + ("  [FINAL]" if final else "") + tools)
        for invocation, outcome in zip(record["invocations"], record["outcomes"]):
            print(f"│  Call: {invocation['name']} {json.dumps(invocation['args'])}")
            if outcome["error"] is not None:
                print(f"│  Error: {outcome['error']}")
            else:
                result = json.dumps(outcome["value"], default=str)
                if len(result) > 200:
                    result = result[:200] + "..."
                print(f"│  Result: {result}")
        if final:
            print(f"│  Answer: {record['final_text']}")
        print("└" + "─" * 68)

    print()


class InteractiveCLI:
    """Interactive CLI for the venue assistant."""

    def __init__(self, agent: OrchestrationLoop, venue_name: str):
        self.agent = agent
        self.venue_name = venue_name

    async def process_query(self, query: str) -> None:
        """Run one turn and print the answer."""
        try:
            result = await self.agent.handle_turn(query)
        except ProviderError as e:
            logger.error(f"Provider failure: {e}")
            print("\nSomething went wrong while contacting the assistant. Please try again.\n")
            return

        print("\n" + "═" * 70)
        print(result.final_text)
        print("═" * 70)
        calls = len(result.invocations)
        print(
            f"(Completed in {result.iterations} iteration(s), {calls} tool call(s))"
            "  Use /trace to see the tool calls.\n"
        )

    def handle_command(self, command: str) -> bool:
        """
        Handle a slash command.

        Returns:
            False if the CLI should exit.
        """
        command = command.lower()
        if command in ("/quit", "/exit", "/q"):
            print("\nGoodbye!\n")
            return False
        if command in ("/help", "/h", "/?"):
            print(HELP_TEXT)
        elif command == "/tools":
            print_tools(self.agent)
        elif command == "/history":
            print_history(self.agent)
        elif command == "/trace":
            print_trace(self.agent)
        elif command == "/clear":
            self.agent.reset_history()
            print("\nConversation history cleared.\n")
        else:
            print(f"\nUnknown command: {command}")
            print("Type /help for available commands.\n")
        return True

    async def run(self) -> None:
        """Run the interactive CLI loop."""
        print_banner(self.venue_name)

        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> ")).strip()
            except EOFError:
                print("\nGoodbye!\n")
                break

            if not user_input:
                continue
            if user_input.startswith("/"):
                if not self.handle_command(user_input):
                    break
            else:
                await self.process_query(user_input)


async def _run(args: argparse.Namespace) -> Optional[dict]:
    venue_map = load_venue_map(args.venue or config.venue.data_path)
    agent = create_agent(venue_map=venue_map, max_iterations=args.max_iterations)
    try:
        if args.query:
            result = await agent.handle_turn(args.query)
            return result.to_dict()
        await InteractiveCLI(agent, venue_map.name).run()
        return None
    finally:
        await agent.provider.close()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Wayfinder Interactive CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --venue venue.yaml                      # Start interactive mode
  %(prog)s --venue venue.yaml -v                   # Start with verbose logging
  %(prog)s --venue venue.yaml -q "Where is coffee?"  # Run a single query
""",
    )
    parser.add_argument(
        "--venue",
        type=str,
        default=None,
        help="Venue YAML file (default: from WAYFINDER_VENUE_DATA env)",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help=f"Iteration ceiling per turn (default: {config.agent.max_iterations})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-q",
        "--query",
        type=str,
        help="Run a single query, print the result as JSON and exit",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)
    init_tracing_client(config.langfuse)

    try:
        output = asyncio.run(_run(args))
    except KeyboardInterrupt:
        print("\n\nInterrupted, shutting down.\n")
        output = None
    except ProviderError as e:
        logger.error(f"Provider failure: {e}")
        sys.exit(1)
    finally:
        shutdown_tracing()

    if output is not None:
        print(json.dumps(output, indent=2, default=str))


if __name__ == "__main__":
    main()
