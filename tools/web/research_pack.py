"""Build the search-augmented conversation sent to the model."""

from models.chat import ChatMessage

from .contracts import WebSearchResult, WebSearchSource


def build_search_context(sources: tuple[WebSearchSource, ...] | list[WebSearchSource]) -> str:
    """
    Render sources as numbered blocks, one blank line apart.

    The 1-based numbers are the labels the model is asked to cite.
    """
    return "\n\n".join(
        f"Source {idx} ({source.title}):\n{source.content}\nURL: {source.url}"
        for idx, source in enumerate(sources, start=1)
    )


def build_search_instruction(question: str, search_context: str) -> str:
    return (
        f'You are a helpful AI assistant. The user asked: "{question}". '
        "You have performed a web search and found the following information. "
        "Please synthesize this information and provide a comprehensive answer to the "
        "user's question, citing the sources (Source 1, Source 2, etc.) where appropriate. "
        f"\n\nWeb Search Results:\n{search_context}"
    )


def compose_augmented_messages(
    messages: tuple[ChatMessage, ...] | list[ChatMessage], search_result: WebSearchResult
) -> list[ChatMessage]:
    """
    Insert the search instruction just before the user's last turn.

    The question ends up twice in the conversation: quoted inside the system
    instruction and as the real last message, so the provider still sees the
    user turn last.

    Args:
        messages: Non-empty conversation; the last element is the question
        search_result: Results of the web search for that question

    Returns:
        New message list, one longer than the input
    """
    if not messages:
        raise ValueError("cannot compose search context for an empty conversation")

    *history, last = messages
    instruction = ChatMessage(
        role="system",
        content=build_search_instruction(last.content, build_search_context(search_result.sources)),
    )
    return [*history, instruction, last]
