"""Prompts for the header-row and column-mapping oracles."""

import json
from typing import Any

JSON_ONLY_SYSTEM_PROMPT = (
    "You are a precise data mapping assistant. Return only valid JSON with no additional text."
)

HEADER_ROW_PROMPT = """Analyze this spreadsheet data and identify the header row.

Spreadsheet rows (first {row_count}):
{rows}

Task:
1. Identify which row contains the column headers (not data, not metadata, not section titles)
2. Extract the exact column names from that row (skip empty/null values)
3. Track the original index/position of each extracted column in the row
4. Provide confidence level (0-100)

Common patterns:
- Headers often come after metadata rows (titles, dates, "By:", "Sort:", etc.)
- Headers contain field names like: Type, Date, Name, Customer, Product, Quantity, Amount, etc.
- Headers are usually short text (not long descriptive sentences)
- Data rows contain actual values (dates in MM/DD/YYYY format, decimal numbers, customer names)
- Avoid rows with "Total", "Subtotal", "Inventory" unless they're clearly column headers
- Some columns may be empty/null - skip them but track the positions of non-empty columns

Example: If row values are ["Customer_Name", null, "Product_Name", "", "Quantity"]
Then: columnNames should be ["Customer_Name", "Product_Name", "Quantity"]
And: columnIndices should be [0, 2, 4]

Return ONLY valid JSON (no markdown, no explanation):
{{
  "headerRowIndex": <number>,
  "columnNames": [<array of exact column name strings from that row, excluding empty values>],
  "columnIndices": [<array of original position indices for each column name>],
  "confidence": <number 0-100>,
  "reasoning": "<brief 1-sentence explanation>"
}}"""

COLUMN_MAPPING_PROMPT = """You are an expert at analyzing sales data files and identifying column mappings.

Available columns in this file:
{columns}

Sample data (first {sample_count} rows):
{sample_data}

Common synonyms for each field type:
{synonyms}

IMPORTANT: For depletion reports, only "account" and "product" are REQUIRED fields.
"date" and "revenue" are OPTIONAL - many depletion reports only track product movement (quantity) without financial data.

Your task: Identify which columns correspond to each field type. Consider:
1. Exact matches with synonyms (e.g., "Cases" = quantity, "Units" = quantity)
2. Partial matches (e.g., "Total Amount" contains "amount")
3. The actual data values in the sample rows
4. Context clues from other columns
5. If date or revenue columns are not clearly present, it's acceptable to leave them null"""

TRAINING_INSTRUCTIONS_SECTION = """

IMPORTANT - DISTRIBUTOR-SPECIFIC TRAINING INSTRUCTIONS:
{instructions}

Please apply these instructions when mapping columns. These instructions describe the specific format and conventions used by this distributor."""

FIELD_MAPPING_HINTS_SECTION = """

FIELD MAPPING HINTS FROM TRAINING:
{hints}

Use these learned patterns to help identify column mappings."""

MAPPING_RESPONSE_FORMAT = """

Return a JSON object with this structure:
{
  "mapping": {
    "date": "column_name_or_null",
    "revenue": "column_name_or_null",
    "account": "column_name_or_null",
    "product": "column_name_or_null",
    "quantity": "column_name_or_null",
    "order_id": "column_name_or_null",
    "category": "column_name_or_null",
    "region": "column_name_or_null",
    "representative": "column_name_or_null"
  },
  "confidence": confidence
}

Rules:
- Only include fields you can confidently identify
- Set confidence between 0.0 and 1.0 based on how certain you are
- For quantity: "Cases", "Units", "Qty", "Boxes" all mean quantity
- For revenue: "Amount", "Total", "Sales", "Extended Price" all mean revenue
- Return ONLY the JSON object, no explanation"""

# Synonyms listed per field in the mapping prompt
MAX_SYNONYMS_PER_FIELD = 10


def build_header_prompt(rows: list[dict[str, Any]]) -> str:
    return HEADER_ROW_PROMPT.format(
        row_count=len(rows), rows=json.dumps(rows, indent=2, default=str)
    )


def build_mapping_prompt(request: dict[str, Any]) -> str:
    """Render the column-mapping prompt for an oracle request."""
    synonyms_by_field = request.get("synonymsByField") or {}
    if synonyms_by_field:
        synonyms = "\n".join(
            f"  {field}: {', '.join(names[:MAX_SYNONYMS_PER_FIELD])}"
            for field, names in synonyms_by_field.items()
        )
    else:
        synonyms = "No synonyms provided"

    sample_data = request.get("sampleData") or []
    prompt = COLUMN_MAPPING_PROMPT.format(
        columns=", ".join(request.get("columns") or []),
        sample_count=len(sample_data),
        sample_data=json.dumps(sample_data, indent=2, default=str),
        synonyms=synonyms,
    )

    training_config = request.get("aiTrainingConfig") or {}
    if training_config.get("parsing_instructions"):
        prompt += TRAINING_INSTRUCTIONS_SECTION.format(
            instructions=training_config["parsing_instructions"]
        )
    if training_config.get("field_mappings"):
        prompt += FIELD_MAPPING_HINTS_SECTION.format(
            hints=json.dumps(training_config["field_mappings"], indent=2)
        )

    return prompt + MAPPING_RESPONSE_FORMAT
