# 라우터 lookup 용 UUID 패턴 (하이픈 포함 정규형만 허용)
UUID_LOOKUP = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
