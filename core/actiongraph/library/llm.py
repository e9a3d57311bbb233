from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from actiongraph.config import settings
from actiongraph.domain.models import WorkflowNode
from actiongraph.library.credentials import credentials_manager
from actiongraph.registry import CancellationSignal, register_action


def llm_model(
    model_name: str | None = None,
    temperature: float = 0.7,
    provider: str = "openai",
) -> BaseChatModel:
    """Initialize a LangChain chat model.

    Args:
        model_name: The name of the model to use (default from settings).
        temperature: Sampling temperature.
        provider: The provider to use (currently only 'openai' supported).
    """
    if provider == "openai":
        return ChatOpenAI(
            model=model_name or settings.llm_model,
            temperature=temperature,
            openai_api_key=credentials_manager.require_api_key(provider),
        )

    raise ValueError(f"Unsupported provider: {provider}")


@register_action("plugin.llm.complete")
async def complete(node: WorkflowNode, input: dict[str, Any], signal: CancellationSignal) -> dict[str, Any]:
    """Single-turn completion: ``{prompt, model?, temperature?, system?}`` -> ``{text}``."""
    prompt = input.get("prompt")
    if not isinstance(prompt, str) or not prompt:
        raise ValueError("'prompt' must be a non-empty string")

    llm = llm_model(
        model_name=input.get("model"),
        temperature=float(input.get("temperature", 0.7)),
        provider=input.get("provider", "openai"),
    )

    messages: list[Any] = []
    if input.get("system"):
        messages.append(SystemMessage(content=str(input["system"])))
    messages.append(HumanMessage(content=prompt))

    response = await llm.ainvoke(messages)
    content = response.content
    if isinstance(content, list):
        content = "".join(part if isinstance(part, str) else str(part.get("text", "")) for part in content)
    return {"text": content}
