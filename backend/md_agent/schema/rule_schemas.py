from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """对外（JSON文件与接口）使用camelCase字段名，Python内部使用snake_case"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class RuleBody(CamelModel):
    """规则中可被合并的部分"""
    name: str = Field(default="", description="规则名称")
    pattern: str = Field(default="", description="语法模式，用占位符表示可变文本")
    description: str = Field(default="", description="规则描述")
    examples: List[str] = Field(default_factory=list, description="具体示例")


class Rule(RuleBody):
    """持久化的样式规则"""
    id: str = Field(description="规则唯一ID，创建后不可变")
    type: str = Field(description="样式类型，如 heading、bold")
    created_at: str = Field(description="创建时间")
    updated_at: str = Field(description="更新时间")

    def body(self) -> RuleBody:
        return RuleBody(
            name=self.name,
            pattern=self.pattern,
            description=self.description,
            examples=list(self.examples),
        )


class RuleDraft(CamelModel):
    """用户提交的新规则"""
    type: str = Field(default="", description="样式类型")
    name: Optional[str] = Field(default=None, description="规则名称，默认 <type>规则")
    pattern: str = Field(default="", description="语法模式")
    description: str = Field(default="", description="规则描述")
    examples: List[str] = Field(default_factory=list, description="具体示例")


class RuleUpdateRequest(CamelModel):
    """规则的部分更新"""
    type: Optional[str] = None
    name: Optional[str] = None
    pattern: Optional[str] = None
    description: Optional[str] = None
    examples: Optional[List[str]] = None


class CreateRuleResponse(CamelModel):
    rule: Rule
    merged: bool = Field(default=False, description="是否与已有同类型规则合并")
    merged_count: int = Field(default=0, description="参与合并的已有规则数量")
    message: str = ""


class RuleSet(CamelModel):
    """规则集，ruleIds 只是对规则的引用"""
    id: str
    name: str
    description: str = ""
    rule_ids: List[str] = Field(default_factory=list)
    created_at: str


class RuleSetCreateRequest(CamelModel):
    name: str = Field(default="", description="规则集名称")
    description: str = Field(default="", description="规则集描述")
    rule_ids: List[str] = Field(default_factory=list, description="包含的规则ID")


class RuleSetUpdateRequest(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    rule_ids: Optional[List[str]] = None


class ConversionHistoryRecord(CamelModel):
    """转换历史，创建后不可修改"""
    id: str
    original_content: str
    converted_content: str
    applied_rule_ids: List[str] = Field(default_factory=list)
    created_at: str
