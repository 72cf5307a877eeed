"""Immutable category catalog and the rule tables the classifier scores against."""

import re
from dataclasses import dataclass, field
from typing import Optional, Pattern, Tuple

# Case-insensitive with ASCII word boundaries so "prd" still matches next to CJK text
_WORD = re.IGNORECASE | re.ASCII


@dataclass(frozen=True)
class CategoryDefinition:
    id: str
    name: str
    slug: str
    description: str
    icon: str
    color: str
    keywords: Tuple[str, ...] = ()
    patterns: Tuple[Pattern[str], ...] = ()


@dataclass(frozen=True)
class ExclusivityRule:
    """Phrases that pin a document to a category when they appear.

    ``title_phrases`` are looked for in the title, ``lead_phrases`` in the
    first ``lead_length`` characters of the content.
    """

    category_id: str
    title_phrases: Tuple[str, ...] = ()
    lead_phrases: Tuple[str, ...] = ()
    lead_length: int = 500


@dataclass(frozen=True)
class HardEvidenceRule:
    """A category that is zeroed out unless one of ``phrases`` is present."""

    category_id: str
    phrases: Tuple[str, ...] = field(default_factory=tuple)


UNCATEGORIZED_ID = "other"
IMAGE_CATEGORY_ID = "image"
REPORT_CATEGORY_ID = "report"
FIXED_LAYOUT_CATEGORY_ID = "reimbursement"
PRODUCT_CATEGORY_ID = "product"
BIDDING_CATEGORY_ID = "bidding"

# Only reachable through forced assignment, never scored
RESERVED_CATEGORY_IDS = frozenset([UNCATEGORIZED_ID, IMAGE_CATEGORY_ID])


CATEGORY_DEFINITIONS: Tuple[CategoryDefinition, ...] = (
    CategoryDefinition(
        id="product",
        name="产品文档",
        slug="product",
        description="产品需求(PRD/MRD)、行业解决方案、白皮书、竞品分析等。",
        icon="package",
        color="#3B82F6",
        keywords=("prd", "mrd", "商业计划", "解决方案", "白皮书", "竞品分析", "痛点", "业务场景", "产品架构", "需求"),
        patterns=(
            re.compile(r"\b(prd|mrd)\b", _WORD),
            re.compile(r"痛点|业务场景|产品架构|解决方案"),
        ),
    ),
    CategoryDefinition(
        id="tech",
        name="技术文档",
        slug="tech",
        description="API接口文档、测试报告、系统架构图、算力/私有化部署指南等。",
        icon="terminal",
        color="#8B5CF6",
        keywords=("api", "代码", "测试报告", "系统架构", "部署指南", "服务器配置", "测试用例", "环境", "接口", "架构"),
        patterns=(
            re.compile(r"\b(api|sdk|http|https|rest|graphql)\b", _WORD),
            re.compile(r"测试报告|系统架构图|算力|私有化部署|测试用例"),
        ),
    ),
    CategoryDefinition(
        id="report",
        name="报表",
        slug="report",
        description="BOM表、项目报价表、成本核算表、数据统计表等。",
        icon="table",
        color="#10B981",
        keywords=("bom", "报价", "成本核算", "数据统计", "明细", "报表", "金额"),
        patterns=(
            re.compile(r"\b(bom)\b", _WORD),
            re.compile(r"项目报价表|成本核算表|数据统计表"),
        ),
    ),
    CategoryDefinition(
        id="bidding",
        name="标书",
        slug="bidding",
        description="招标文件、投标书、商务技术响应表、评分标准等。",
        icon="briefcase",
        color="#F59E0B",
        keywords=("招标", "投标", "商务技术响应", "评分标准", "询价单", "评标", "资质", "甲方", "标书"),
        patterns=(re.compile(r"招标文件|投标书|商务技术响应表|评分标准"),),
    ),
    CategoryDefinition(
        id="policy",
        name="政策文件",
        slug="policy",
        description="国家标准、行业规范、公司内部管理制度等。",
        icon="landmark",
        color="#EF4444",
        keywords=("国家标准", "行业规范", "管理制度", "规定", "办法", "通知", "红头文件", "规章制度"),
        patterns=(re.compile(r"国家标准|行业规范|内部管理制度"),),
    ),
    CategoryDefinition(
        id="meeting",
        name="会议纪要",
        slug="meeting",
        description="客户拜访记录、周会纪要、项目复盘、需求评审记录等。",
        icon="users",
        color="#06B6D4",
        keywords=(
            "交流", "访谈", "调研", "座谈", "汇报", "纪要", "会议", "minutes", "meeting",
            "拜访记录", "周会", "复盘", "需求评审", "与会者", "讨论决议", "待办事项", "todo",
        ),
        patterns=(
            re.compile(r"\b(todo|action item)\b", _WORD),
            re.compile(r"客户拜访记录|周会纪要|项目复盘|需求评审记录"),
        ),
    ),
    CategoryDefinition(
        id="training",
        name="培训材料",
        slug="training",
        description="产品赋能培训、新员工入职PPT、操作手册等。",
        icon="presentation",
        color="#84CC16",
        keywords=("赋能", "新员工", "入职", "操作手册", "目的", "流程介绍", "注意事项", "教程", "指引", "培训"),
        patterns=(re.compile(r"产品赋能培训|新员工入职|操作手册"),),
    ),
    CategoryDefinition(
        id="image",
        name="图片",
        slug="image",
        description="PNG/JPG等纯图片资产。",
        icon="image",
        color="#F97316",
        keywords=("image", "photo", "picture", "screenshot", "diagram", "图片", "照片", "截图", "图表", "图像"),
    ),
    CategoryDefinition(
        id="reimbursement",
        name="报销文件",
        slug="reimbursement",
        description="电子发票(PDF/OFD)、行程单、打车票据等。",
        icon="receipt",
        color="#EC4899",
        keywords=("电子发票", "ofd", "行程单", "打车票", "发票代码", "价税合计", "开票日期", "水单", "报销"),
        patterns=(
            re.compile(r"\b(ofd)\b", _WORD),
            re.compile(r"电子发票|行程单|打车票据|发票代码|价税合计"),
        ),
    ),
    CategoryDefinition(
        id="other",
        name="其他记录",
        slug="other",
        description="无法归入以上任何一类的碎片化文档。",
        icon="folder",
        color="#6B7280",
    ),
)

EXCLUSIVITY_RULES: Tuple[ExclusivityRule, ...] = (
    ExclusivityRule(
        category_id="product",
        title_phrases=("产品方案", "产品介绍", "product plan"),
        lead_phrases=("产品方案", "product plan"),
    ),
    ExclusivityRule(
        category_id="meeting",
        title_phrases=("交流", "访谈", "访谈纪要", "调研", "座谈", "汇报", "会议", "拜访", "meeting minutes"),
    ),
    ExclusivityRule(
        category_id="reimbursement",
        title_phrases=("发票", "invoice"),
    ),
)

HARD_EVIDENCE_RULES: Tuple[HardEvidenceRule, ...] = (
    HardEvidenceRule(
        category_id="bidding",
        phrases=(
            "招标", "投标", "评分标准", "偏离表", "废标", "开标", "标书",
            "评标", "招标文件", "询价单", "商务技术响应",
        ),
    ),
)

_BY_ID = {definition.id: definition for definition in CATEGORY_DEFINITIONS}
_BY_NAME = {definition.name: definition for definition in CATEGORY_DEFINITIONS}

# Display name -> id, used to translate user-facing filter values
CATEGORY_NAME_TO_ID = {definition.name: definition.id for definition in CATEGORY_DEFINITIONS}


def get_category(category_id: str) -> Optional[CategoryDefinition]:
    return _BY_ID.get(category_id)


def get_category_by_name(name: str) -> Optional[CategoryDefinition]:
    return _BY_NAME.get(name)


def category_name(category_id: str) -> str:
    definition = _BY_ID.get(category_id)
    return definition.name if definition else category_id


def scorable_categories() -> Tuple[CategoryDefinition, ...]:
    return tuple(d for d in CATEGORY_DEFINITIONS if d.id not in RESERVED_CATEGORY_IDS)


def category_ids() -> Tuple[str, ...]:
    return tuple(d.id for d in CATEGORY_DEFINITIONS)
