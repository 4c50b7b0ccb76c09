"""
Insurance Chat - Main Entry Point

Interactive terminal chat over the insurance message pipeline:
- Keyword categorization and context extraction
- Model replies enhanced with knowledge base information
- Offline knowledge base fallback when the model is unavailable
- Transcript persisted between runs
- Per-query audit logging
"""
from __future__ import annotations

import os
import logging
from typing import Optional

from insurance_chat.analytics import ChatAnalytics
from insurance_chat.chat_service import InsuranceChatService
from insurance_chat.config import HISTORY_PATH, LOG_DIR, QUERY_LOG_FILE, ChatConfig
from insurance_chat.schemas import Role, TurnResult
from insurance_chat.session import ChatSession
from insurance_chat.storage import JsonFileStore

logger = logging.getLogger("insurance_chat")

HELP_TEXT = """Commands:
  exit            Quit
  reset           Clear the conversation
  retry           Re-send the last message
  search <text>   Search the knowledge base
  model <name>    Use a specific model (no name clears the override)
  stats           Show interaction metrics"""


def setup_logging() -> None:
    os.makedirs(LOG_DIR, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(f"{LOG_DIR}/system.log")
        ]
    )


def initialize_system(
    config: Optional[ChatConfig] = None,
) -> tuple[InsuranceChatService, JsonFileStore]:
    """
    Initialize all system components.

    Args:
        config: Service settings. Read from INSURANCE_CHAT_* variables when omitted.

    Returns:
        Tuple of (service, store)
    """
    print("\n=== Insurance Chat ===\n")

    config = config or ChatConfig.from_env()
    logger.info(f"Model: {config.model} | AI enabled: {config.use_ai} | Provider: {config.base_url}")

    analytics = ChatAnalytics(log_file=QUERY_LOG_FILE)
    service = InsuranceChatService(config, analytics=analytics)
    logger.info(f"Knowledge base loaded: {len(service.knowledge_base)} entries")

    store = JsonFileStore(HISTORY_PATH)

    return service, store


def print_turn(result: TurnResult) -> None:
    if not result.ok:
        print(f"\nSomething went wrong: {result.error}. Type 'retry' to try again.")
        return

    reply = result.messages[-1]
    print("\n=== ANSWER ===\n")
    print(reply.content)

    if reply.suggestions:
        print("\nYou might also ask:")
        for suggestion in reply.suggestions:
            print(f"  - {suggestion}")


def main():
    """Main entry point for the interactive chat."""
    setup_logging()

    service, store = initialize_system()
    session = ChatSession(service, store=store, session_id="cli")

    previous = [m for m in session.messages if m.role == Role.USER]
    if previous:
        print(f"Restored conversation with {len(previous)} earlier question(s).")

    print("\nSystem ready. Type 'exit' to quit, 'help' for commands.\n")

    while True:
        try:
            query = input("\nEnter your question: ").strip()

            if not query:
                continue

            command = query.lower()

            if command == "exit":
                print("Exiting system.")
                break

            if command == "help":
                print(HELP_TEXT)
                continue

            if command == "reset":
                session.reset()
                print("Conversation cleared.")
                continue

            if command == "retry":
                print_turn(session.retry_last())
                continue

            if command.startswith("search "):
                results = session.search_knowledge_base(query[len("search "):].strip())
                if not results:
                    print("No matching entries.")
                for entry in results:
                    print(f"\n{entry.term.title()}: {entry.definition}")
                continue

            if command == "model" or command.startswith("model "):
                name = query[len("model"):].strip() or None
                session.set_model_override(name)
                print(f"Model override: {name or 'none'}")
                continue

            if command == "stats":
                metrics = service.analytics.get_performance_metrics()
                print(f"Interactions: {metrics.total_interactions}")
                print(f"Average response time: {metrics.average_response_time:.2f}s")
                print(f"Average confidence: {metrics.average_confidence_score:.2f}")
                continue

            print_turn(session.send(query))

        except KeyboardInterrupt:
            print("\n\nInterrupted. Exiting.")
            break
        except Exception as e:
            logger.error(f"Error handling query: {e}")
            print(f"\nError: {e}")


if __name__ == "__main__":
    main()
