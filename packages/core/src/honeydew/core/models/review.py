"""Review Domain Model

每个任务只允许一条评价，创建后不支持编辑或删除。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Review(BaseModel):
    """Review 数据模型"""

    review_id: str = Field(description="唯一标识，ULID 格式")
    task_id: str = Field(description="关联的 Task ID，唯一")
    helper_id: str = Field(description="被评价 helper")
    reviewer_id: str = Field(description="评价者（任务发布者）")
    rating: int = Field(ge=1, le=5, description="评分 1-5")
    text: str = Field(default="", description="评价内容（可选）")
    created_at: datetime = Field(description="创建时间")
