"""LLM boundary: chat clients, prompts and the week evaluator."""
