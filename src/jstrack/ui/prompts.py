# src/jstrack/ui/prompts.py
"""
Interactive prompts. Reads run in an executor so the apply/unapply flows
can await them between network checks.
"""
import asyncio

from rich.console import Console

console = Console()


async def ask_question(question: str) -> str:
    """Ask a question and return the stripped answer ('' on EOF). `question` is rich markup."""
    loop = asyncio.get_running_loop()
    try:
        answer = await loop.run_in_executor(None, lambda: console.input(question))
    except EOFError:
        return ""
    return answer.strip()


async def ask_for_confirmation(question: str) -> bool:
    """y / yes (any case) confirms, anything else declines."""
    answer = await ask_question(question)
    return answer.lower() in ("y", "yes")
