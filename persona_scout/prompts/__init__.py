"""Prompts module initialization"""
from .system_prompts import PERSONA_SCHEMA, PERSONA_USER_DIRECTIVE, build_system_prompt

__all__ = ["PERSONA_SCHEMA", "PERSONA_USER_DIRECTIVE", "build_system_prompt"]
