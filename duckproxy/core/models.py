"""Mapping from client model names to the upstream's model identifiers."""

DEFAULT_MODEL = "gpt-4o-mini"

MODEL_ALIASES = {
    "gpt-4o-mini": "gpt-4o-mini",
    "claude-3-haiku": "claude-3-haiku-20240307",
    "llama-3.1-70b": "meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo",
    "mixtral-8x7b": "mistralai/Mixtral-8x7B-Instruct-v0.1",
}

# Short names advertised on /v1/models, in display order
SUPPORTED_MODELS = tuple(MODEL_ALIASES)


def map_model(model_name: str) -> str:
    """Return the upstream model id for a client-supplied name.

    Matching is exact but case-insensitive. Unknown names, the empty string
    and non-string values all map to ``DEFAULT_MODEL``.
    """
    if not isinstance(model_name, str):
        return DEFAULT_MODEL
    return MODEL_ALIASES.get(model_name.lower(), DEFAULT_MODEL)
