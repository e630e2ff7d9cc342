"""Todo Domain Model

远端 todos 表的一行。id 与时间戳由远端存储生成，本地只读。
本地状态更新一律通过 model_copy 生成新实例，不就地修改，
以便任意时刻的列表快照都可直接用于回滚。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Todo(BaseModel):
    """Todo 数据模型"""

    id: int = Field(description="远端生成的自增 ID")
    text: str = Field(description="任务文本（已去除首尾空白）")
    completed: bool = Field(default=False, description="是否已完成")
    order_index: int = Field(default=0, description="排序序号，升序即显示顺序")
    created_at: datetime | None = Field(default=None, description="创建时间（远端维护）")
    updated_at: datetime | None = Field(default=None, description="更新时间（远端维护）")


class NewTodo(BaseModel):
    """待插入的 Todo（尚无 id）"""

    text: str = Field(min_length=1, description="任务文本")
    order_index: int = Field(description="排序序号")
