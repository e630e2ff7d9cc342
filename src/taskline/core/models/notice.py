"""Notice -- 面向用户的操作结果通知"""

from pydantic import BaseModel, Field

from .enums import NoticeLevel, TodoOperation


class Notice(BaseModel):
    """一条用户可见通知（成功提示或错误提示）"""

    level: NoticeLevel = Field(description="通知级别")
    title: str = Field(description="标题")
    description: str = Field(default="", description="详细说明")
    operation: TodoOperation | None = Field(default=None, description="来源操作")

    @property
    def is_error(self) -> bool:
        return self.level == NoticeLevel.ERROR
