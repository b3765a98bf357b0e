"""
API 層（FastAPI routers）

- display：當前展示、公開輪替、強制輪替、歷史
- queue：已核准佇列（管理員）
- stats：解題統計
- presence：在線狀態
"""
