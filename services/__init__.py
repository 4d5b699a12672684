"""
服務層

這個 package 包含純計算與輔助邏輯，不負責狀態轉換：
- RingService：輪轉順序計算
- StatsService：終身統計累加
- HistoryService：遊戲紀錄查詢
- NamingService：房間代碼生成
- StateService / NotificationService：狀態版本與外部通知
"""
