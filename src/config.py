"""
Centralized configuration
"""
import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

from src.document_types import DOCUMENT_TYPES, get_document_type

# Setup debug logger for configuration
_config_logger = logging.getLogger('config')

# Check for DEBUG_MODE early (before .env is loaded, check environment)
_debug_mode = os.getenv('DEBUG_MODE', 'false').lower() == 'true'
if _debug_mode:
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("DEBUG_MODE enabled - verbose logging active")

# Get config directory (current working directory)
_config_dir = Path.cwd()
_env_file = _config_dir / '.env'

if not _env_file.exists():
    _config_logger.info(".env configuration file not found, using environment and defaults")

# Load .env file if it exists
_dotenv_result = load_dotenv(_env_file)
if _debug_mode:
    _config_logger.debug(f"load_dotenv() returned: {_dotenv_result} ({_env_file.absolute()})")

# Server configuration
HOST = os.getenv('HOST', '127.0.0.1')
PORT = int(os.getenv('PORT', '5000'))

# Working directories: one sub-directory per process holds its page images
BASE_PATH = os.getenv('BASE_PATH', str(_config_dir / 'data'))
DATABASE_PATH = os.getenv('DATABASE_PATH', os.path.join(BASE_PATH, 'db', 'processes.sqlite'))

# Rendering service used by the critique stage (HTML -> screenshot)
RENDER_ENDPOINT = os.getenv('RENDER_ENDPOINT', 'http://localhost:5001/api/html-to-image')
RENDER_TIMEOUT = int(os.getenv('RENDER_TIMEOUT', '60'))

# LLM request timeout in seconds (per model call)
REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '900'))
# Delay between provider retries in seconds
RETRY_DELAY = int(os.getenv('RETRY_DELAY', '2'))

# Coarse bound for one whole document run
RUN_TIMEOUT_HOURS = float(os.getenv('RUN_TIMEOUT_HOURS', '10'))

# Process creation rate limit (requests per window per client IP)
PROCESS_RATE_LIMIT = int(os.getenv('PROCESS_RATE_LIMIT', '10'))
PROCESS_RATE_WINDOW = int(os.getenv('PROCESS_RATE_WINDOW', '60'))

# Stale process watcher
MAX_PROCESS_TIME = int(os.getenv('MAX_PROCESS_TIME', str(10 * 60)))
WATCHER_CHECK_INTERVAL = int(os.getenv('WATCHER_CHECK_INTERVAL', '60'))

# Translation defaults
DEFAULT_ADAPTER = os.getenv('DEFAULT_ADAPTER', 'openai')
DEFAULT_TARGET_LANGUAGE = os.getenv('DEFAULT_TARGET_LANGUAGE', 'spanish')
DEFAULT_PROMPT = "Translate the document faithfully."

# Provider credentials
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
GEMINI_API_KEY = os.getenv('GEMINI_API_KEY', '')
ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY', '')

# Provider endpoints
OPENAI_API_ENDPOINT = os.getenv('OPENAI_API_ENDPOINT', 'https://api.openai.com/v1/chat/completions')
GEMINI_API_ENDPOINT = os.getenv('GEMINI_API_ENDPOINT', 'https://generativelanguage.googleapis.com/v1beta/models')
ANTHROPIC_API_ENDPOINT = os.getenv('ANTHROPIC_API_ENDPOINT', 'https://api.anthropic.com/v1/messages')

# Debug mode (reload after .env is loaded)
DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

# Page image extensions accepted by the rasterizer
PAGE_IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg')

# lang attribute of the assembled document
LANGUAGE_CODES = {
    'spanish': 'es',
    'english': 'en',
    'french': 'fr',
    'german': 'de',
    'italian': 'it',
    'portuguese': 'pt',
    'catalan': 'ca',
}


@dataclass(frozen=True)
class AdapterConfig:
    """Static description of a model provider: model, concurrency ceiling and retry policy"""
    name: str
    model: str
    api_key: str
    simultaneous_requests: int
    default_cycles: int
    max_cycles: int
    max_retries: int
    max_tokens: Optional[int] = None
    provider_options: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Public view (no credentials)"""
        return {
            'name': self.name,
            'model': self.model,
            'simultaneous_requests': self.simultaneous_requests,
            'default_cycles': self.default_cycles,
            'max_cycles': self.max_cycles,
            'max_retries': self.max_retries,
        }


ADAPTERS = {
    'openai': AdapterConfig(
        name='openai',
        model=os.getenv('OPENAI_MODEL', 'gpt-4.1'),
        api_key=OPENAI_API_KEY,
        simultaneous_requests=int(os.getenv('OPENAI_SIMULTANEOUS_REQUESTS', '50')),
        default_cycles=1,
        max_cycles=5,
        max_retries=2,
    ),
    'google': AdapterConfig(
        name='google',
        model=os.getenv('GEMINI_MODEL', 'gemini-2.5-pro'),
        api_key=GEMINI_API_KEY,
        simultaneous_requests=int(os.getenv('GEMINI_SIMULTANEOUS_REQUESTS', '50')),
        default_cycles=2,
        max_cycles=5,
        max_retries=2,
        max_tokens=32000,
    ),
    'anthropic': AdapterConfig(
        name='anthropic',
        model=os.getenv('ANTHROPIC_MODEL', 'claude-3-7-sonnet-20250219'),
        api_key=ANTHROPIC_API_KEY,
        simultaneous_requests=int(os.getenv('ANTHROPIC_SIMULTANEOUS_REQUESTS', '1')),
        default_cycles=0,
        max_cycles=1,
        max_retries=0,
        max_tokens=16000,
        provider_options={'thinking': {'type': 'disabled'}},
    ),
}


def get_adapter_config(name: str) -> AdapterConfig:
    """Look up an adapter by name, raising ValueError for unknown names"""
    try:
        return ADAPTERS[name]
    except KeyError:
        raise ValueError(f"Adapter '{name}' is not supported (available: {', '.join(ADAPTERS)})")


def language_code(language: str) -> str:
    """ISO code for a target language name, e.g. 'spanish' -> 'es'"""
    language = (language or '').strip().lower()
    return LANGUAGE_CODES.get(language, language[:2] or 'en')


def _to_int(*values) -> int:
    for value in values:
        try:
            return int(value)
        except (TypeError, ValueError):
            continue
    return 0


def merge_prompts(template_prompt: str, user_prompt: str) -> str:
    """
    Merge the document-type prompt with the user's own instructions.

    Identical prompts collapse to one; a user prompt that already embeds the
    template wins; otherwise the user instructions are appended.
    """
    base = (template_prompt or '').strip()
    custom = (user_prompt or '').strip()
    if base and custom and base == custom:
        return base
    if base and custom and base in custom:
        return custom
    if base and custom:
        return f"{base}\n\n---\nAdditional user instructions:\n{custom}"
    return custom or base or DEFAULT_PROMPT


def resolve_document_type(source) -> dict:
    """
    Expand a catalog reference into the full document type.

    A bare key ("patents" or {"key": "patents"}) becomes the catalog entry;
    fields sent next to a catalog key override the catalog values. Anything
    else is an inline document type and is returned unchanged.

    Raises:
        ValueError: If a bare key names no catalog entry
    """
    if isinstance(source, str):
        source = {'key': source}
    source = source or {}
    entry = get_document_type(source.get('key')) if source.get('key') else None
    if entry is None:
        if set(source) == {'key'}:
            available = ', '.join(item['key'] for item in DOCUMENT_TYPES)
            raise ValueError(f"Document type '{source['key']}' is not available (available: {available})")
        return source
    overrides = {name: value for name, value in source.items()
                 if name != 'key' and value not in (None, '', [])}
    return {**entry, **overrides}


def normalize_document_type(source: Optional[dict]) -> dict:
    source = source or {}
    style_guidance = source.get('styleGuidance', source.get('style_guidance', []))
    return {
        'id': source.get('id'),
        'key': source.get('key') or source.get('id') or 'custom',
        'label': source.get('label') or 'Custom',
        'version': _to_int(source.get('version'), 1) or 1,
        'prompt': source.get('prompt') or '',
        'glossary': source.get('glossary') if isinstance(source.get('glossary'), list) else [],
        'styleGuidance': style_guidance if isinstance(style_guidance, list) else [],
        'examples': source.get('examples') if isinstance(source.get('examples'), list) else [],
    }


@dataclass
class TranslationConfig:
    """Configuration of one translation run (stored on the process record)"""

    adapter: str = DEFAULT_ADAPTER
    language: str = DEFAULT_TARGET_LANGUAGE
    cycles: int = 0
    prompt: str = DEFAULT_PROMPT
    user_prompt: str = ''
    template_prompt: str = ''
    document_type: dict = field(default_factory=normalize_document_type)

    @property
    def adapter_config(self) -> AdapterConfig:
        return get_adapter_config(self.adapter)

    @classmethod
    def from_request(cls, request_data: Optional[dict], previous: Optional[dict] = None) -> 'TranslationConfig':
        """
        Build a config from request data, falling back to a previously stored
        translation config for missing fields.

        Cycles are clamped to the adapter's maximum. A document type given by
        catalog key is expanded from the catalog. The template prompt of a
        previous run is kept unless a new document type is requested.

        Raises:
            ValueError: If the adapter or a requested document type key is unknown
        """
        request_data = request_data or {}
        previous = previous or {}

        adapter = request_data.get('adapter') or previous.get('adapter') or DEFAULT_ADAPTER
        adapter_config = get_adapter_config(adapter)

        language = request_data.get('language') or previous.get('language') or DEFAULT_TARGET_LANGUAGE
        cycles = _to_int(request_data.get('cycles'), previous.get('cycles'), 0)
        cycles = max(0, min(cycles, adapter_config.max_cycles))

        requested_type = request_data.get('documentType')
        document_type = normalize_document_type(
            resolve_document_type(requested_type or previous.get('documentType')))
        if requested_type:
            template_prompt = document_type['prompt']
        else:
            template_prompt = previous.get('templatePrompt') or document_type['prompt']
        user_prompt = request_data.get('prompt')
        if user_prompt is None:
            user_prompt = previous.get('prompt', '')
        user_prompt = (user_prompt or '').strip()

        return cls(
            adapter=adapter,
            language=language,
            cycles=cycles,
            prompt=merge_prompts(template_prompt, user_prompt),
            user_prompt=user_prompt,
            template_prompt=template_prompt,
            document_type=document_type,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence on the process record"""
        return {
            'adapter': self.adapter,
            'language': self.language,
            'cycles': self.cycles,
            'prompt': self.user_prompt,
            'mergedPrompt': self.prompt,
            'templatePrompt': self.template_prompt,
            'documentType': self.document_type,
        }


# Log loaded configuration in debug mode
if DEBUG_MODE or _debug_mode:
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("=" * 60)
    _config_logger.debug("LOADED CONFIGURATION VALUES:")
    _config_logger.debug(f"   HOST: {HOST}  PORT: {PORT}")
    _config_logger.debug(f"   BASE_PATH: {BASE_PATH}")
    _config_logger.debug(f"   DATABASE_PATH: {DATABASE_PATH}")
    _config_logger.debug(f"   RENDER_ENDPOINT: {RENDER_ENDPOINT}")
    _config_logger.debug(f"   DEFAULT_ADAPTER: {DEFAULT_ADAPTER}")
    _config_logger.debug(f"   RUN_TIMEOUT_HOURS: {RUN_TIMEOUT_HOURS}")
    _config_logger.debug(f"   OPENAI_API_KEY: {'***' + OPENAI_API_KEY[-4:] if OPENAI_API_KEY else '(not set)'}")
    _config_logger.debug(f"   GEMINI_API_KEY: {'***' + GEMINI_API_KEY[-4:] if GEMINI_API_KEY else '(not set)'}")
    _config_logger.debug(f"   ANTHROPIC_API_KEY: {'***' + ANTHROPIC_API_KEY[-4:] if ANTHROPIC_API_KEY else '(not set)'}")
    _config_logger.debug("=" * 60)
