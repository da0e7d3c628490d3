"""
Persona Scout Configuration
Loads configuration from config.yaml and credentials from .env
"""
import os
import logging
from pathlib import Path
from dotenv import load_dotenv
import yaml
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any


# Load .env from project root for API keys
PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")


def load_yaml_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from config.yaml"""
    config_path = config_path or PROJECT_ROOT / "config.yaml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            "Please create config.yaml in the project root."
        )

    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


class LLMConfig(BaseModel):
    """LLM provider configuration (any OpenAI-compatible endpoint)"""
    provider: str = "xai"
    model: str = "grok-4"
    base_url: str = "https://api.x.ai/v1"
    temperature: float = 0.1
    max_tokens: int = 6000
    timeout_seconds: float = 120.0
    api_key: Optional[str] = Field(default_factory=lambda: os.getenv("XAI_API_KEY"))


class AgentConfig(BaseModel):
    """Agent loop configuration"""
    max_turns: int = Field(default=12, ge=1, le=50)
    recover_tool_errors: bool = False


class ToolsConfig(BaseModel):
    """Evidence tool configuration"""
    timeout_seconds: float = 15.0
    max_retries: int = 2
    retry_backoff_seconds: float = 0.5
    rate_limit_retries: int = 1
    rate_limit_backoff_seconds: float = 2.0
    page_max_chars: int = 20000
    render_min_chars: int = 200
    search_url: str = "https://api.exa.ai/search"
    x_api_base: str = "https://api.twitter.com/2"
    search_api_key: Optional[str] = Field(default_factory=lambda: os.getenv("EXA_API_KEY"))
    x_bearer_token: Optional[str] = Field(default_factory=lambda: os.getenv("X_BEARER_TOKEN"))
    pdf_extractor_url: Optional[str] = Field(default_factory=lambda: os.getenv("PDF_EXTRACTOR_URL"))
    render_url: Optional[str] = Field(default_factory=lambda: os.getenv("RENDER_URL"))


class SeederConfig(BaseModel):
    """Evidence seeding configuration"""
    x_post_limit: int = 50
    web_results: int = 10


class ServerConfig(BaseModel):
    """Server Configuration"""
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False


class LoggingConfig(BaseModel):
    """Logging Configuration"""
    level: str = "INFO"
    log_dir: str = "./logs"
    max_days: int = 15
    json_format: bool = True
    console_colors: bool = True
    timezone: str = "UTC"


class Config(BaseModel):
    """Main Configuration - loaded from config.yaml"""
    llm: LLMConfig = LLMConfig()
    agent: AgentConfig = AgentConfig()
    tools: ToolsConfig = ToolsConfig()
    seeder: SeederConfig = SeederConfig()
    server: ServerConfig = ServerConfig()
    logging: LoggingConfig = LoggingConfig()

    # Paths
    project_root: Path = PROJECT_ROOT


def create_config_from_yaml(yaml_data: Dict[str, Any]) -> Config:
    """Create Config object from YAML data"""
    server_data = dict(yaml_data.get("server") or {})
    # PORT from the environment wins over the file (container platforms set it)
    if os.getenv("PORT"):
        server_data["port"] = int(os.environ["PORT"])

    return Config(
        llm=LLMConfig(**(yaml_data.get("llm") or {})),
        agent=AgentConfig(**(yaml_data.get("agent") or {})),
        tools=ToolsConfig(**(yaml_data.get("tools") or {})),
        seeder=SeederConfig(**(yaml_data.get("seeder") or {})),
        server=ServerConfig(**server_data),
        logging=LoggingConfig(**(yaml_data.get("logging") or {})),
    )


# Create global config instance
config = create_config_from_yaml(load_yaml_config())

# Configure logging for third-party libraries; our own loggers are set up in core.logging
logging.basicConfig(
    level=getattr(logging, config.logging.level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def reload_config() -> Config:
    """Reload configuration from config.yaml"""
    global config
    config = create_config_from_yaml(load_yaml_config())
    return config
