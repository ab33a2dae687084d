"""Agent orchestration: LLM client, tools, workflow state and the agent loop."""
