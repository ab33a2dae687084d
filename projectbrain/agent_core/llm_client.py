"""
LLM client for the agent.

Wraps ``openai.AsyncOpenAI`` chat completions with function calling and
builds the agent's system and user prompts.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from projectbrain.core.errors import AppException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.monitoring import log_llm_call
from projectbrain.server.core.config import OpenAIConfig, settings

logger = get_logger(__name__)

MAX_HISTORY_MESSAGES = 10

SYSTEM_PROMPT = """You are a proactive AI assistant for neurodiverse individuals. You can perform actions on behalf \
of users to help them manage their daily goals and tasks.

Your capabilities:
- Create daily goals when users mention tasks or objectives
- Retrieve and view existing goals
- Mark goals as complete or incomplete
- Help organize and prioritize tasks

Communication style:
- Be clear, concise, and break down complex information into manageable parts
- Use a friendly, supportive, and respectful tone
- Always explain what actions you're taking and why
- Ask for confirmation before major actions if uncertain
"""


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: Dict[str, Any]


@dataclass
class LLMReply:
    """Assistant turn returned by the model."""

    content: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)

    def to_message(self) -> Dict[str, Any]:
        """The assistant message to append before sending tool results back."""
        message: Dict[str, Any] = {"role": "assistant", "content": self.content or None}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                }
                for call in self.tool_calls
            ]
        return message


def build_system_prompt(user_name: Optional[str]) -> str:
    prompt = SYSTEM_PROMPT
    if user_name:
        prompt += (
            f"\nYou are chatting with {user_name}. Use their name occasionally and naturally, "
            "never in a patronizing or condescending way.\n"
        )
    prompt += (
        "\nWhen you decide to perform an action, use the available tools. "
        "After using a tool, explain what you did to the user in a friendly way."
    )
    return prompt


def build_user_prompt(query: str, user_information: Optional[str]) -> str:
    parts: List[str] = []
    if user_information:
        parts.extend(
            [
                "---",
                "Here is some data in json format about the user based on their onboarding data:",
                user_information,
                "---",
                "",
            ]
        )
    parts.extend(["User Query:", query])
    return "\n".join(parts)


class AgentLLMClient:
    """Chat completions with tool calling."""

    def __init__(self, config: Optional[OpenAIConfig] = None, client: Optional[AsyncOpenAI] = None) -> None:
        self.config = config or settings.openai
        # Built on first use so the agent routes load without OPENAI_API_KEY
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.config.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.config.api_key:
                raise AppException("AGENT_NOT_CONFIGURED", "The AI provider is not configured", status_code=503)
            self._client = AsyncOpenAI(api_key=self.config.api_key, base_url=self.config.base_url)
        return self._client

    def build_messages(
        self,
        query: str,
        user_name: Optional[str] = None,
        user_information: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> List[Dict[str, Any]]:
        """System prompt, the last few history turns, then the user prompt."""
        messages: List[Dict[str, Any]] = [{"role": "system", "content": build_system_prompt(user_name)}]
        for turn in (history or [])[-MAX_HISTORY_MESSAGES:]:
            role = turn.get("role", "user")
            if role in ("user", "assistant"):
                messages.append({"role": role, "content": turn.get("content", "")})
        messages.append({"role": "user", "content": build_user_prompt(query, user_information)})
        return messages

    async def chat(self, messages: List[Dict[str, Any]], tools: Optional[List[Dict[str, Any]]] = None) -> LLMReply:
        """Run one completion.

        Args:
            messages: OpenAI chat messages
            tools: OpenAI function tool definitions

        Returns:
            The assistant text and parsed tool calls
        """
        kwargs: Dict[str, Any] = {"model": self.config.model, "messages": messages}
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        completion = await self._get_client().chat.completions.create(**kwargs)

        if completion.usage is not None:
            log_llm_call(self.config.model, completion.usage.total_tokens)

        choice = completion.choices[0].message
        calls: List[ToolCall] = []
        for call in choice.tool_calls or []:
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError:
                logger.warning(f"Model returned malformed arguments for tool {call.function.name}")
                arguments = {}
            calls.append(ToolCall(id=call.id, name=call.function.name, arguments=arguments))
        return LLMReply(content=choice.content or "", tool_calls=calls)
