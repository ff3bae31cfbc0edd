"""
Configuration for the relay-backed article extraction pipeline
"""

import json
import os
from dotenv import load_dotenv

# Загружаем переменные окружения из .env файла
load_dotenv()

# Default relay chain, overridable with RELAY_PROVIDERS (JSON list)
DEFAULT_RELAY_PROVIDERS = [
    {
        'identifier': 'corsproxy',
        'endpoint_template': 'https://corsproxy.io/?{url}',
        'envelope_kind': 'raw_text',
    },
    {
        'identifier': 'allorigins',
        'endpoint_template': 'https://api.allorigins.win/get?url={encoded_url}',
        'envelope_kind': 'json_wrapped',
        'json_field': 'contents',
    },
    {
        'identifier': 'cors-anywhere',
        'endpoint_template': 'https://cors-anywhere.herokuapp.com/{url}',
        'envelope_kind': 'raw_text',
    },
    {
        'identifier': 'thingproxy',
        'endpoint_template': 'https://thingproxy.freeboard.io/fetch/{url}',
        'envelope_kind': 'raw_text',
    },
]


class Config:
    """Pipeline settings read from the environment"""

    def __init__(self):
        # Relay providers, in attempt order
        self.RELAY_PROVIDERS = self._load_relay_providers(os.getenv('RELAY_PROVIDERS'))

        # Timeouts (seconds)
        self.RELAY_ATTEMPT_TIMEOUT_S = float(os.getenv('RELAY_ATTEMPT_TIMEOUT_S', '10'))
        self.EXTRACTION_TIMEOUT_S = float(os.getenv('EXTRACTION_TIMEOUT_S', '45'))
        self.PROBE_TIMEOUT_S = float(os.getenv('PROBE_TIMEOUT_S', '5'))

        # Thresholds (characters)
        self.MIN_MARKUP_LENGTH = int(os.getenv('MIN_MARKUP_LENGTH', '100'))
        self.MIN_CONTENT_LENGTH = int(os.getenv('MIN_CONTENT_LENGTH', '200'))
        self.MIN_PARAGRAPH_LENGTH = int(os.getenv('MIN_PARAGRAPH_LENGTH', '20'))
        self.MIN_USABLE_CONTENT_LENGTH = int(os.getenv('MIN_USABLE_CONTENT_LENGTH', '100'))

        # Record shaping
        self.WORDS_PER_MINUTE = int(os.getenv('WORDS_PER_MINUTE', '200'))
        self.EXCERPT_LENGTH = int(os.getenv('EXCERPT_LENGTH', '200'))
        self.MAX_TITLE_LENGTH = int(os.getenv('MAX_TITLE_LENGTH', '200'))
        self.MAX_AUTHOR_LENGTH = int(os.getenv('MAX_AUTHOR_LENGTH', '100'))

        self.USER_AGENT = os.getenv(
            'USER_AGENT',
            'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
            '(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36'
        )

        # Настройки логирования
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
        self.STRUCTURED_LOGGING = os.getenv('STRUCTURED_LOGGING', 'false').lower() == 'true'
        self.DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

        self._validate_config()

    @staticmethod
    def _load_relay_providers(raw):
        """Parse RELAY_PROVIDERS; fall back to the bundled chain when unset"""
        if raw is None or not raw.strip():
            return [dict(item) for item in DEFAULT_RELAY_PROVIDERS]
        try:
            providers = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"RELAY_PROVIDERS is not valid JSON: {e}") from e
        if not isinstance(providers, list) or not all(isinstance(p, dict) for p in providers):
            raise ValueError("RELAY_PROVIDERS must be a JSON list of objects")
        return providers

    def _validate_config(self):
        """Валидация конфигурации"""
        for name in ('RELAY_ATTEMPT_TIMEOUT_S', 'EXTRACTION_TIMEOUT_S', 'PROBE_TIMEOUT_S'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be greater than 0")

        if self.PROBE_TIMEOUT_S >= self.RELAY_ATTEMPT_TIMEOUT_S:
            raise ValueError("PROBE_TIMEOUT_S must be shorter than RELAY_ATTEMPT_TIMEOUT_S")

        if self.WORDS_PER_MINUTE <= 0:
            raise ValueError("WORDS_PER_MINUTE must be greater than 0")

        for provider in self.RELAY_PROVIDERS:
            if not provider.get('identifier') or not provider.get('endpoint_template'):
                raise ValueError(f"Relay provider needs identifier and endpoint_template: {provider}")

    def __str__(self) -> str:
        """Строковое представление конфигурации"""
        names = ', '.join(p['identifier'] for p in self.RELAY_PROVIDERS) or '(none)'
        return f"""Configuration:
- Relay providers: {names}
- Attempt timeout: {self.RELAY_ATTEMPT_TIMEOUT_S}s
- Extraction timeout: {self.EXTRACTION_TIMEOUT_S}s
- Probe timeout: {self.PROBE_TIMEOUT_S}s
- Min content length: {self.MIN_CONTENT_LENGTH}
- Log Level: {self.LOG_LEVEL}"""

# Глобальный экземпляр конфигурации
config = Config()
