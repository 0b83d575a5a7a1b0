"""Concrete implementations of provider interfaces.

Adapters live under ``adapters.llm`` and are imported on demand by
``core.assistant.create_assistant`` so that only the selected SDK loads.
"""
