"""Terminal chat client.

Usage: python -m app.client.cli [--api-url URL]

Commands inside the prompt:
  /new            start a new chat
  /list           show chat sessions
  /open <id>      switch to a session
  /delete <id>    delete a session
  /quit           exit
Anything else is sent as a message to the active session.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from app.client.api_client import DEFAULT_BASE_URL, ChatApiClient
from app.client.state import ChatController

_background_tasks = set()


def _print_sessions(controller: ChatController) -> None:
    sessions = controller.state.sessions
    if not sessions:
        print("No chat sessions yet")
        return
    for session in sessions:
        marker = "*" if session["sessionId"] == controller.state.current_session else " "
        print(f"{marker} {session['sessionId']}  (updated {session['updatedAt']})")


def _print_history(controller: ChatController) -> None:
    for message in controller.state.messages:
        speaker = "you" if message["role"] == "user" else "bot"
        print(f"[{speaker}] {message['content']}")


def _print_error(controller: ChatController) -> None:
    if controller.state.display_error:
        print(f"! {controller.state.display_error}", file=sys.stderr)


async def _run_countdown(controller: ChatController) -> None:
    while controller.state.countdown > 0:
        await asyncio.sleep(1)
        controller.state.tick()


async def _handle(controller: ChatController, line: str) -> bool:
    """Run one prompt line. Returns False when the user asked to quit."""
    command, _, argument = line.partition(" ")
    argument = argument.strip()

    if command == "/quit":
        return False
    if command == "/new":
        await controller.create_chat()
        print(f"Started chat {controller.state.current_session}")
    elif command == "/list":
        await controller.refresh_sessions()
        _print_sessions(controller)
    elif command == "/open" and argument:
        await controller.select_session(argument)
        _print_history(controller)
    elif command == "/delete" and argument:
        await controller.delete_session(argument)
        _print_sessions(controller)
    elif command.startswith("/"):
        print(__doc__)
    elif controller.state.countdown > 0:
        pass
    elif not controller.state.current_session:
        print("Start a new conversation with /new")
    elif await controller.send_message(line):
        print(f"[bot] {controller.state.messages[-1]['content']}")
    elif controller.state.countdown > 0:
        task = asyncio.create_task(_run_countdown(controller))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

    _print_error(controller)
    return True


async def repl(api_url: str) -> int:
    api = ChatApiClient(api_url)
    controller = ChatController(api)
    try:
        await controller.refresh_sessions()
        _print_sessions(controller)
        _print_error(controller)
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            if line.strip() and not await _handle(controller, line.strip()):
                break
    finally:
        await api.aclose()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(prog="chat", description="Chat with the Chatbot API from a terminal")
    parser.add_argument(
        "--api-url",
        default=os.getenv("CHAT_API_URL", DEFAULT_BASE_URL),
        help=f"Base URL of the API (default: {DEFAULT_BASE_URL})",
    )
    parser.add_argument("--verbose", action="store_true", help="Log HTTP errors")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.CRITICAL)
    try:
        return asyncio.run(repl(args.api_url))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
