"""
Persona Builder
One request end to end: seed evidence, run the agent, parse the answer.
"""
from typing import Any, Dict, Optional

from .agent import AgentExecutor
from .logging import agent_logger
from .output import parse_persona
from .seeder import Seeder
from .transcript import Transcript
from ..config import config
from ..errors import InputValidationError
from ..prompts import PERSONA_USER_DIRECTIVE, build_system_prompt
from ..providers.base import BaseLLMProvider, SystemMessage, UserMessage
from ..tools.catalog import ToolCatalog, ToolName


def normalize_url(value: Any) -> Optional[str]:
    """Trimmed string or None; non-strings are rejected."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise InputValidationError("linkedin_url and x_url must be strings")
    return value.strip() or None


class PersonaBuilder:
    """Wires the seeder, the agent loop and the output validator together."""

    def __init__(
        self,
        provider: BaseLLMProvider,
        catalog: ToolCatalog,
        seeder: Optional[Seeder] = None,
        agent: Optional[AgentExecutor] = None,
    ):
        self.provider = provider
        self.catalog = catalog
        self.seeder = seeder or Seeder(
            web_search=catalog.get(ToolName.WEB_SEARCH),
            x_search=catalog.get(ToolName.X_KEYWORD_SEARCH),
            x_post_limit=config.seeder.x_post_limit,
            web_results=config.seeder.web_results,
            recover_errors=config.agent.recover_tool_errors,
        )
        self.agent = agent or AgentExecutor(provider, catalog)
        self.logger = agent_logger()

    async def build(self, linkedin_url: Optional[str], x_url: Optional[str]) -> Dict[str, Any]:
        """
        Produce the response payload for one request.

        Raises:
            InputValidationError: neither URL was given
            PersonaScoutError: any seeding, model, tool or parsing failure
        """
        if not linkedin_url and not x_url:
            raise InputValidationError("Provide at least one URL (linkedin_url or x_url)")

        seed = await self.seeder.seed(linkedin_url, x_url)

        transcript = Transcript([
            SystemMessage(content=build_system_prompt(linkedin_url, x_url)),
            UserMessage(content=PERSONA_USER_DIRECTIVE),
            *seed.to_messages(self.seeder.x_post_limit, self.seeder.web_results),
        ])

        run = await self.agent.run(transcript)
        persona = parse_persona(run.content)

        self.logger.info(
            "Persona built",
            extra={"fields": {"turns": run.turns, "tool_calls": len(run.tool_calls)}},
        )
        return {
            "linkedin_url": linkedin_url,
            "x_url": x_url,
            "persona": persona,
            "debug": {
                "seeded_x_handle": seed.x_handle,
                "seeded_linkedin_slug": seed.linkedin_slug,
                "seeded_x_posts": len(seed.x_posts),
                "seeded_web_results": len(seed.web_results),
                "turns": run.turns,
                "tool_calls": run.tool_calls,
            },
        }
