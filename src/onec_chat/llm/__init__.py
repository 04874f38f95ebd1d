"""Streaming LLM client for onec_chat."""

from onec_chat.llm.client import ChatClient, FragmentSink
from onec_chat.llm.request import SYSTEM_PROMPT, build_chat_request, build_headers, models_url
from onec_chat.llm.sse import DeltaAccumulator, SSEReassembler, parse_delta

__all__ = [
    "ChatClient",
    "DeltaAccumulator",
    "FragmentSink",
    "SSEReassembler",
    "SYSTEM_PROMPT",
    "build_chat_request",
    "build_headers",
    "models_url",
    "parse_delta",
]
