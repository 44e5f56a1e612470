"""프로젝트 전역 설정값 (``settings``)."""
