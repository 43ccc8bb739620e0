"""AI-relevance filter for story titles."""

AI_KEYWORDS: tuple[str, ...] = (
    "ai",
    "a.i.",
    "llm",
    "gpt",
    "chatgpt",
    "openai",
    "anthropic",
    "claude",
    "gemini",
    "deepmind",
    "llama",
    "mistral",
    "copilot",
    "nvidia",
    "artificial intelligence",
    "machine learning",
    "neural",
    "deep learning",
    "language model",
    "transformer",
    "diffusion",
    "agent",
    "inference",
    "fine-tun",
    "embedding",
    "hugging face",
    "deepseek",
    "grok",
)


def is_ai_related(title: str, keywords: tuple[str, ...] = AI_KEYWORDS) -> bool:
    """Case-insensitive substring match of the title against the allow-list."""
    lowered = title.lower()
    return any(keyword in lowered for keyword in keywords)
