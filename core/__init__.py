"""
核心業務邏輯層

這個 package 包含所有會改變狀態的業務邏輯，包括：
- RotationEngine：每日展示項目的輪替（含歸檔與統計重置）
- QueueManager：核准佇列的寫入與查詢
- StatsTracker：每週期、每參與者只計一次的統計
- PresenceTracker：參與者在線狀態
- Locks：並發控制工具
- Triggers：排程觸發器
"""
