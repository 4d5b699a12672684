"""
核心業務邏輯層

這個 package 包含所有核心業務邏輯，包括：
- 狀態機：集中管理 Room 狀態轉換
- Manager：加入、回合、淘汰、加分、房間生命週期
- Locks：並發控制工具（每個房間一把鎖）
"""
