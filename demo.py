"""
Demo: resolve a configuration from the environment, then generate and stream
content through whichever backend it selects.

Usage:
    python demo.py [gemini-api-key|vertex-ai|openai-api-key] [model]
"""
import asyncio
import logging
import sys

from google.genai import types
from rich.console import Console

from genbridge import AuthKind, ContentGenerationClient, RichPrinter, RichStreamPrinter

console = Console()


async def main(auth_kind: str, model: str = None):
    async with await ContentGenerationClient.create(auth_kind, model=model) as client:
        console.print(f"[bold cyan]Using {client.provider} with {client.config.model}")

        request = {
            "contents": [{"role": "user", "parts": [{"text": "Introduce yourself in one sentence using markdown."}]}],
            "config": types.GenerateContentConfig(
                system_instruction="You are a concise assistant.",
                temperature=0.7,
            ),
        }

        response = await client.generate_content(request)
        RichPrinter(provider=client.provider).print_response(response)

        tokens = await client.count_tokens({"contents": request["contents"]})
        console.print(f"[dim]Prompt tokens: {tokens.total_tokens}")

        async with await client.generate_content_stream(request) as stream:
            await RichStreamPrinter(title="Streaming", provider=client.provider).print_stream(stream)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    args = sys.argv[1:]
    asyncio.run(main(args[0] if args else AuthKind.USE_GEMINI.value, args[1] if len(args) > 1 else None))
