"""Models a client may select for a chat turn."""

from pydantic import BaseModel, ConfigDict


class ChatModel(BaseModel):
    """Selectable model. `id` is what clients send as modelId."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    api_identifier: str
    description: str


DEFAULT_MODELS: tuple[ChatModel, ...] = (
    ChatModel(
        id="gpt-4o-mini",
        label="GPT 4o mini",
        api_identifier="gpt-4o-mini",
        description="Small model for fast, lightweight tasks",
    ),
    ChatModel(
        id="gpt-4o",
        label="GPT 4o",
        api_identifier="gpt-4o",
        description="For complex, multi-step tasks",
    ),
)

DEFAULT_MODEL_ID = "gpt-4o-mini"


def find_model(models: tuple[ChatModel, ...], model_id: str | None) -> ChatModel | None:
    """Return the model whose id matches model_id, if any."""
    if not model_id:
        return None
    return next((model for model in models if model.id == model_id), None)
