"""
Demo: one conversational turn against a local reasoning model.

Reads the question from the command line, asks Ollama (streamed, with
retries) and prints the visible reply. The reasoning trace goes to the log.
"""
import asyncio
import logging
import sys
from typing import List

from rich.logging import RichHandler

from localmux import LocalInferenceClient, Message, RichPrinter, with_retry

SYSTEM_PROMPT = """
The user content you will receive may have been transcribed from audio, so it may not be 100% accurate.

Handle their input with common sense and nuance, be it answering questions, chatting or performing actions on their behalf.

IMPORTANT:

- Your output may be converted to audio, so speak conversationally and succinctly.
- Keep your output free of special characters, formatting and markdown.
"""


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s", handlers=[RichHandler()])

    question = " ".join(sys.argv[1:]) or "What is the capital of France?"
    client = LocalInferenceClient()

    messages: List[Message] = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": question},
    ]

    result = await with_retry(
        lambda: client.generate(
            "ollama",
            "deepseek-r1:1.5b",
            messages=messages,
            thinking={"is_reasoning_model": True, "log_reasoning": True},
            stream=True,
        ),
        max_attempts=3,
        base_delay=1.0,
        exponential_backoff=True,
        context="LLM generation",
    )

    RichPrinter(title="Assistant").print_result(result)


if __name__ == "__main__":
    asyncio.run(main())
