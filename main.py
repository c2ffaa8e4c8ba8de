import os
import sys

import httpx
from dotenv import load_dotenv

from utils.stream_reader import iter_stream

# Load environment variables first
load_dotenv()

SERVER_URL = os.getenv('CHAT_SERVER_URL', 'http://127.0.0.1:8000')
DEFAULT_MODEL = os.getenv('DEFAULT_MODEL', 'openai/gpt-4o-mini')


def print_search_metadata(metadata: dict) -> None:
    """
    Print the web search sources carried by the stream's metadata frame.

    Args:
        metadata: The decoded metadata object
    """
    search = metadata.get('webSearchSources', {})
    print(f"\n\033[90m[Searched: {search.get('query', '')}]")
    for idx, source in enumerate(search.get('sources', []), start=1):
        print(f"  Source {idx}: {source.get('title', '')} - {source.get('url', '')}")
    images = search.get('images', [])
    if images:
        print(f"  ({len(images)} images)")
    print("\033[0m")


def stream_chat(client: httpx.Client, messages: list, web_search: bool) -> str:
    """
    Send the conversation to the server and echo the answer as it streams.

    Returns:
        The full assistant answer
    """
    payload = {
        'chatSettings': {'model': DEFAULT_MODEL, 'temperature': 0.5},
        'messages': messages,
        'isWebSearchEnabled': web_search,
    }
    headers = {}
    if os.getenv('OPENROUTER_API_KEY'):
        headers['X-Provider-Api-Key'] = os.getenv('OPENROUTER_API_KEY')

    answer = []
    with client.stream('POST', f"{SERVER_URL}/v1/chat", json=payload, headers=headers) as response:
        if response.status_code != 200:
            response.read()
            raise RuntimeError(response.json().get('message', response.text))

        sys.stdout.write("AI: ")
        for kind, value in iter_stream(response.iter_bytes()):
            if kind == 'metadata':
                print_search_metadata(value)
                sys.stdout.write("AI: ")
            else:
                answer.append(value)
                sys.stdout.write(value)
            sys.stdout.flush()
    print("\n")
    return "".join(answer)


def main():
    messages = []
    web_search = os.getenv('WEB_SEARCH', 'true').lower() == 'true'

    print("\n=== Web Search Chat ===")
    print("Type 'exit' to quit, 'search' to toggle web search, 'clear' to reset, or 'help'\n")

    with httpx.Client(timeout=httpx.Timeout(120.0, connect=10.0)) as client:
        while True:
            try:
                user_input = input("You: ").strip()

                if not user_input:
                    continue

                if user_input.lower() in ('exit', 'quit'):
                    print("\nGoodbye!")
                    break

                if user_input.lower() == 'search':
                    web_search = not web_search
                    print(f"Web search {'enabled' if web_search else 'disabled'}\n")
                    continue

                if user_input.lower() == 'clear':
                    messages = []
                    print("Conversation cleared\n")
                    continue

                if user_input.lower() == 'help':
                    print("\n=== Available Commands ===")
                    print("help      - Show this help message")
                    print("search    - Toggle web search")
                    print("clear     - Start a new conversation")
                    print("exit/quit - Exit the program\n")
                    continue

                messages.append({'role': 'user', 'content': user_input})
                answer = stream_chat(client, messages, web_search)
                messages.append({'role': 'assistant', 'content': answer})

            except KeyboardInterrupt:
                print("\nExiting...")
                break
            except (httpx.HTTPError, RuntimeError) as e:
                messages = messages[:-1] if messages and messages[-1]['role'] == 'user' else messages
                print(f"\nError: {e}\n")
                continue


if __name__ == "__main__":
    main()
