"""
Shared constants - category labels, keyword sets, patterns and thresholds.
"""

import re

# Category display labels (values of models.Category)
WORK = "工作"
ROUTINE = "日常"
DEVELOPMENT = "學習"
FAMILY = "家庭"
SOCIAL = "社交"
RESTING = "休息"

CATEGORY_ORDER = [WORK, DEVELOPMENT, ROUTINE, FAMILY, SOCIAL, RESTING]

CATEGORY_COLORS = {
    WORK: "#3b82f6",
    ROUTINE: "#f97316",
    DEVELOPMENT: "#22c55e",
    FAMILY: "#ef4444",
    SOCIAL: "#a855f7",
    RESTING: "#94a3b8",
}

IMMERSION_LEVELS = (1, 2, 3, 4, 5)

# Analysis thresholds
ENERGY_CHANGE_THRESHOLD = 2  # Minimum immersion change to flag a transition
HIGH_IMMERSION = 4  # Immersion counted as "deep" for the productivity score
SLEEP_START_HOUR = 0
SLEEP_END_HOUR = 7  # Entries starting before this hour default to resting

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 1440

# Line patterns
TIME_HEADER_PATTERN = re.compile(r"(\d{2}:\d{2})\s*~\s*(\d{2}:\d{2})")
THOUGHT_PATTERN = re.compile(r"^\s*-?\s*>\s*(.*)")
ACTION_PATTERN = re.compile(r"^\s*-?\s*v\s*(.*)")
BARS_PATTERN = re.compile(r"[❚|]+")

SLEEP_PLACEHOLDER = "（自動補齊睡眠時段）"
SLEEP_ENTRY_ID = 0

# Keyword fallback, checked in this order (first match wins)
CATEGORY_KEYWORDS = {
    RESTING: ["睡", "sleep", "nap", "休息", "放鬆"],
    WORK: ["slide", "工作", "開會", "meeting", "會議"],
    DEVELOPMENT: ["讀書", "學習", "study", "learning", "閱讀", "開發"],
    FAMILY: ["家人", "父母", "爸", "媽", "family"],
}

# LLM defaults
DEFAULT_PROVIDER = "gemini"
DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_OLLAMA_MODEL = "llama3"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
REQUEST_TIMEOUT = 30  # seconds

DEFAULT_CONFIG_PATH = "config.yaml"
DEFAULT_KEYSTORE_PATH = "~/.config/daylog/credentials.yaml"
DEFAULT_EXPORT_DIR = "exports"

# User-facing messages
MESSAGES = {
    "analyzing": "AI 分析中 ...",
    "complete": "✅ 完成！",
    "keyword_mode": "關鍵字分類模式",
    "no_valid_log": "未偵測到有效日誌",
    "ai_connection_failed": "AI 連線失敗",
    "ai_thinking": "AI 思考中 ...",
    "stable_energy": "能量狀態平穩。",
    "no_data": "無足夠數據",
    "no_api_key": "請填寫 API Key 以啟用 AI 教練功能。",
    "key_saved": "✅ 已儲存！",
    "key_empty": "⚠️ 請輸入",
}

DEMO_DATA = """- 07:00 ~ 08:00 起床 + 弄早餐 ❚❚❚
- 08:00 ~ 09:30 閱讀技術文章 ❚❚❚❚
  - > 學習新的設計模式
  - v 做筆記整理重點
- 09:30 ~ 12:00 開發新功能 ❚❚❚❚❚
- 12:00 ~ 13:00 午餐 ❚❚
- 13:00 ~ 15:00 Code Review 會議 ❚❚❚
- 15:00 ~ 17:00 重構專案 ❚❚❚❚
- 17:00 ~ 18:00 運動 ❚❚❚❚
- 18:00 ~ 19:00 晚餐 ❚❚
- 19:00 ~ 21:00 個人專案開發 ❚❚❚❚❚
- 21:00 ~ 22:00 放鬆 ❚"""
