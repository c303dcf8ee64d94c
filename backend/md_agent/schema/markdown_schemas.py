from typing import List, Optional

from pydantic import Field

from md_agent.schema.rule_schemas import CamelModel, Rule, RuleBody


class ExtractRequest(CamelModel):
    """样式提取请求"""
    content: str = Field(default="", description="待分析的Markdown文本")
    style_types: Optional[List[str]] = Field(default=None, description="只保留这些样式类型的规则")


class ExtractResponse(CamelModel):
    success: bool = True
    rules: List[Rule] = Field(default_factory=list)
    message: str = ""
    summary: Optional[str] = Field(default=None, description="模型给出的提取摘要")
    confidence: Optional[float] = Field(default=None, description="模型给出的置信度")


class ConvertRequest(CamelModel):
    """样式转换请求"""
    content: str = Field(default="", description="原始文本")
    rule_ids: List[str] = Field(default_factory=list, description="要应用的规则ID")
    target_style: Optional[str] = Field(default=None, description="目标风格提示，如 academic")


class AppliedRule(CamelModel):
    """模型自报的规则应用情况（不做独立校验）"""
    name: str = ""
    applied: bool = True
    description: str = ""


class ConvertResponse(CamelModel):
    success: bool = True
    converted_content: str = ""
    applied_rules: List[AppliedRule] = Field(default_factory=list)
    message: str = ""
    summary: Optional[str] = None
    confidence: Optional[float] = None


class MergeResult(CamelModel):
    """智能合并结果：合并后的规则主体，以及调用方需要更新/删除的规则ID"""
    success: bool = False
    merged_rule: Optional[RuleBody] = None
    summary: Optional[str] = None
    confidence: Optional[float] = None
    target_rule_id: Optional[str] = Field(default=None, description="合并写入的规则ID（最早创建的同类型规则）")
    delete_rule_ids: List[str] = Field(default_factory=list, description="合并后需要删除的其余同类型规则")
    merged_count: int = Field(default=0, description="参与合并的已有同类型规则数量")


class ConnectionTestResponse(CamelModel):
    success: bool
    message: str
    provider: Optional[str] = None
    model: Optional[str] = None
