import json
from typing import List, Optional, Sequence

from md_agent.schema.rule_schemas import Rule, RuleBody

# 提取时至少要识别的样式类型，只作为参考，不限制模型
MIN_STYLE_CATEGORIES = ["heading", "bold", "italic", "quote", "code", "link", "list", "table"]

JSON_ONLY_SYSTEM_PROMPT = "你是一个专业的Markdown样式分析专家。你必须严格按照要求返回纯JSON格式，不得包含任何解释文字、代码块标记或其他内容。"

MERGE_SYSTEM_PROMPT = "你是一个专业的Markdown样式规则整理专家，负责把多条同类型规则合并成一条。只返回纯JSON对象。"


class MarkdownPrompt:
    """样式提取、转换、合并三类任务的提示词"""

    def build_extract_prompt(self, content: str, style_types: Optional[List[str]] = None) -> str:
        # 样式类型只作为提示，过滤在解析之后做
        types_text = ", ".join(style_types) if style_types else "所有可识别的样式类型"
        categories = "、".join(MIN_STYLE_CATEGORIES)
        return f"""你是一个Markdown样式分析专家，专门从文本中提取格式规则。

重要要求：
1. 必须严格返回JSON格式
2. 禁止返回任何解释、说明或其他文字
3. 禁止使用markdown代码块包装
4. 禁止添加任何前缀或后缀
5. 响应必须以{{开始，以}}结束

分析以下Markdown文本，提取其中的样式规则：

{content}

需要提取的样式类型：{types_text}
至少检查以下类型（不限于此）：{categories}
每种类型只返回一条规则，pattern 中用 {{text}} 表示可变文本。

返回格式（严格遵循）：
{{
  "rules": [
    {{
      "type": "样式类型",
      "name": "规则名称",
      "description": "规则描述",
      "pattern": "样式模式",
      "examples": ["示例1", "示例2"]
    }}
  ],
  "summary": "提取结果摘要",
  "confidence": 0.95
}}

警告：任何非JSON内容都将导致解析失败！只返回纯JSON对象！"""

    def build_convert_prompt(self, content: str, rules: Sequence[Rule],
                             target_style: Optional[str] = None) -> str:
        rules_text = "\n".join(
            f"- {rule.name or rule.type}: {rule.pattern} ({rule.description})" for rule in rules
        )
        style_text = f"为{target_style}风格" if target_style else ""
        return f"""请根据以下规则转换Markdown文本{style_text}：

原始文本：
```
{content}
```

应用规则：
{rules_text}

请返回JSON格式的结果：
{{
  "convertedContent": "转换后的文本",
  "appliedRules": [
    {{
      "name": "规则名称",
      "applied": true,
      "description": "应用描述"
    }}
  ],
  "summary": "转换结果摘要",
  "confidence": 0.9
}}

只返回JSON，不要其他文字。"""

    def build_merge_prompt(self, rule_type: str, proposed: RuleBody, existing: Sequence[Rule]) -> str:
        """新规则在前，已有规则按创建时间排列"""
        existing_text = "\n".join(
            f"{index}. {json.dumps(rule.body().to_json_dict(), ensure_ascii=False)}"
            for index, rule in enumerate(existing, start=1)
        )
        proposed_text = json.dumps(proposed.to_json_dict(), ensure_ascii=False)
        return f"""以下是若干条类型同为 "{rule_type}" 的Markdown样式规则，请把它们合并成一条规则。

新规则：
{proposed_text}

已有规则（按创建时间从早到晚）：
{existing_text}

合并要求：
1. name 和 description 以新规则为准
2. pattern 需要兼容已有规则中出现过的写法，在其基础上扩展，不要直接替换
3. examples 取所有规则示例的并集并去重，优先保留有代表性的示例
4. 不要编造原文中没有出现过的写法

返回格式（严格遵循）：
{{
  "mergedRule": {{
    "name": "规则名称",
    "pattern": "合并后的样式模式",
    "description": "规则描述",
    "examples": ["示例1", "示例2"]
  }},
  "summary": "合并说明",
  "confidence": 0.9
}}

只返回JSON，不要其他文字。"""
