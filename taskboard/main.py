# taskboard/main.py  (통합 엔트리포인트)
from dotenv import load_dotenv

# 루트 .env 로딩 (settings 생성 전에 한 번에 로딩)
load_dotenv()

from taskboard.backend.main import app as app  # noqa: E402
