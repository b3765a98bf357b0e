"""
自定義異常類別

集中管理所有業務邏輯異常，方便 API 層統一處理

注意：佇列為空不是異常（RotationReason.QUEUE_EMPTY），不在這裡定義
"""


class FeaturedRotationException(Exception):
    """所有業務異常的基類"""
    pass


# ============ Display 相關異常 ============

class DisplaySlotUnavailable(FeaturedRotationException):
    """Display 槽位無法取得（例如併發建立時失敗）"""
    pass


# ============ Queue 相關異常 ============

class InvalidItem(FeaturedRotationException):
    """提交的項目不符合要求（線索數量 3-10、名稱不可空白）"""
    pass
