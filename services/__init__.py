"""
服務層

這個 package 包含純計算邏輯與查詢輔助，不負責 commit：
- CalendarService：民用日邊界計算
- ArchiveService：統計快照與歸檔
- IdentityService：參與者身分（雜湊）
"""
