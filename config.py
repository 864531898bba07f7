# This file consolidates all hard-coded values for better maintainability

import os

from dotenv import load_dotenv

load_dotenv()

# HTTP Configuration
HTTP_TIMEOUT_SHORT = 10         # Short timeout for profile and telemetry calls
HTTP_TIMEOUT_STANDARD = 15      # Standard timeout for most requests
HTTP_TIMEOUT_LONG = 60          # Long timeout for model generation calls

# HTTP Connection Pooling and Retry Configuration
HTTP_MAX_RETRIES = 3            # Maximum number of HTTP retries
HTTP_BACKOFF_FACTOR = 0.3       # Backoff factor for retries

ENHANCED_USER_AGENT = 'EventAnalyzer/1.0 (+https://github.com/event-analyzer)'

# Backend API Configuration
API_BASE_URL = os.getenv('EVENT_ANALYZER_API_BASE_URL', 'https://unified-mcp-server-production.up.railway.app/api')
API_BEARER_TOKEN = os.getenv('EVENT_ANALYZER_BEARER_TOKEN')
API_GENERATE_PATH = '/gemini/generate'
API_PARSING_PROFILE_PATH = '/parsing-profile'
API_PARSE_TELEMETRY_PATH = '/parse-telemetry'

# Model Configuration
MODEL_PROVIDER = os.getenv('MODEL_PROVIDER', 'backend')   # backend | openai | stub
GPT_MODEL_STANDARD = "gpt-4.1-mini"            # Model used when talking to OpenAI directly
MODEL_TEMPERATURE = 0.1                        # Low temperature for consistent extraction
MODEL_MAX_TOKENS = 8192                        # Output cap for analysis and repair calls
PRECHECK_MAX_TOKENS = 512                      # Output cap for the event pre-check

# Finish reasons reported by model callers
FINISH_REASON_STOP = 'STOP'
FINISH_REASON_MAX_TOKENS = 'MAX_TOKENS'
FINISH_REASON_SAFETY = 'SAFETY'

# Telemetry
PARSE_TELEMETRY_SAMPLE_RATE = 0.12             # Share of successful parses reported
PARSE_TELEMETRY_MAX_WORKERS = 1                # Background threads delivering telemetry, 1 keeps order

# Page signal limits (applied when PageSignals are built)
MAX_MAIN_TEXT_CHARS = 30000
MAX_HTML_CHARS = 50000
MAX_SESSION_BLOCKS = 250
MAX_SPEAKER_DIRECTORY = 300
MAX_SPONSOR_CANDIDATES = 200

# Prompt construction
PRECHECK_CONTENT_CHARS = 3000                  # Main text sent to the pre-check classifier

# Reconciliation
DEFAULT_EVENT_NAME = 'Unknown Event'
DESCRIPTION_FALLBACK_CHARS = 320               # Main text used as a last-resort description
PERSONA_MAX_PEOPLE = 25                        # People considered for persona buckets
PERSONA_MAX_BUCKETS = 5                        # Persona buckets emitted

# Display Configuration
BANNER_WIDTH = 80                              # Width of banners and separators
SECTION_SEPARATOR_WIDTH = 50                   # Width of section separators
MAX_DISPLAY_TEXT = 60                          # Maximum characters in table cells
MAX_RAW_RESPONSE_DISPLAY = 500                 # Maximum raw response length to display

# Settings file
ANALYSIS_CONFIG_FILE = 'analysis.yaml'
