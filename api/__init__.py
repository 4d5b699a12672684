"""
API 層

只負責 HTTP：解析請求、呼叫 core 的 Manager、把異常轉成狀態碼
"""
