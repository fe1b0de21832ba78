import asyncio
import logging
import sys

from recallchat.config.settings import settings
from recallchat.container import configure_container, container
from recallchat.core.protocols.llm import LLMProtocol
from recallchat.core.services.chat_service import ChatService
from recallchat.core.services.session import ChatSession, run_periodic_flush

logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")
logger = logging.getLogger(__name__)

CHAT_HELP = """Commands:
  /new               start a new conversation
  /list              list conversations
  /open <id>         switch to a conversation
  /delete <id>       delete a conversation
  /thinking          show the thinking behind the last reply
  /theme dark|light  set the UI theme preference
  /quit              save and exit"""


def _print_conversations(session: ChatSession) -> None:
    conversations = session.store.list()
    if not conversations:
        print("No conversations yet")
        return
    for conversation in conversations:
        marker = "*" if conversation.id == session.active_id else " "
        updated = conversation.updated_at.astimezone().strftime("%Y-%m-%d %H:%M")
        print(f"{marker} {conversation.id}  {updated}  {conversation.title}")


def _handle_command(session: ChatSession, line: str) -> bool:
    """Handle a slash command. Returns False when the loop should stop."""
    command, _, arg = line.partition(" ")
    arg = arg.strip()

    if command == "/quit":
        return False
    if command == "/new":
        conversation_id = session.new_conversation()
        print(f"Started {conversation_id}")
    elif command == "/list":
        _print_conversations(session)
    elif command == "/open":
        if session.open(arg):
            for message in session.history:
                print(f"[{message.role}] {message.content or ''}")
        else:
            print(f"Unknown conversation: {arg}")
    elif command == "/delete":
        if not session.delete(arg):
            print(f"Unknown conversation: {arg}")
    elif command == "/thinking":
        last = session.history.last
        print(last.thinking if last is not None and last.thinking else "No thinking recorded")
    elif command == "/theme":
        try:
            session.set_ui_theme(arg)
        except ValueError as e:
            print(e)
    else:
        print(CHAT_HELP)
    return True


async def _chat_loop() -> None:
    session = container.resolve(ChatSession)
    chat_service = container.resolve(ChatService)
    flusher = asyncio.create_task(run_periodic_flush(session, settings.sync_interval_seconds))

    print(f"{settings.ai_name} - type /help for commands")
    try:
        while True:
            try:
                line = (await asyncio.to_thread(input, "> ")).strip()
            except EOFError:
                break
            if not line:
                continue
            if line.startswith("/"):
                if not _handle_command(session, line):
                    break
                continue

            result = await chat_service.send_message(session, line)
            if result is not None:
                print(f"\n{result.message.content}\n")
    finally:
        flusher.cancel()
        session.flush()
        await container.resolve(LLMProtocol).aclose()


def cmd_chat():
    """Chat command - interactive loop."""
    configure_container(settings)
    try:
        asyncio.run(_chat_loop())
    except KeyboardInterrupt:
        logger.info("Interrupted")


def cmd_list():
    """List command - stored conversations, most recent first."""
    configure_container(settings)
    _print_conversations(container.resolve(ChatSession))


def cmd_show(conversation_id: str):
    """Show command - print one conversation."""
    configure_container(settings)
    session = container.resolve(ChatSession)
    conversation = session.store.get(conversation_id)
    if conversation is None:
        print(f"Unknown conversation: {conversation_id}")
        sys.exit(1)
    print(f"# {conversation.title}")
    for message in conversation.messages:
        print(f"[{message.role}] {message.content or ''}")


def cmd_delete(conversation_id: str):
    """Delete command - remove one conversation."""
    configure_container(settings)
    session = container.resolve(ChatSession)
    if not session.delete(conversation_id):
        print(f"Unknown conversation: {conversation_id}")
        sys.exit(1)
    logger.info(f"Deleted {conversation_id}")


def main():
    """CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: python -m recallchat.presentation.cli <command>")
        print("Commands: chat, list, show <id>, delete <id>")
        sys.exit(1)

    command = sys.argv[1]

    if command == "chat":
        cmd_chat()
    elif command == "list":
        cmd_list()
    elif command in ("show", "delete"):
        if len(sys.argv) < 3:
            print(f"Usage: python -m recallchat.presentation.cli {command} <id>")
            sys.exit(1)
        if command == "show":
            cmd_show(sys.argv[2])
        else:
            cmd_delete(sys.argv[2])
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
