"""
Prompt templates for the extraction backend.
"""

from .base_prompts import BasePrompt
from .transaction_prompts import PromptParams, TransactionExtractionPrompt, build_prompt

__all__ = [
    'BasePrompt',
    'PromptParams',
    'TransactionExtractionPrompt',
    'build_prompt'
]
