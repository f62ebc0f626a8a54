"""
Prompt construction for the case analysis.

The prompt embeds a flattened "disease | neighborhood: count" summary of
the aggregation table, the analysis instructions and the JSON schema the
model must answer with.
"""

from services.case_aggregator import AggregationTable

RESPONSE_FIELDS = (
    "disease",
    "neighborhood",
    "probable_cause",
    "mitigation",
    "mitigation_rationale",
    "reduction_estimate_percent",
    "reduction_rationale",
)

PROMPT_TEMPLATE = """Você é um agente de saúde pública analisando casos notificados no município de {locality}, que tem {population} habitantes.

Casos notificados (doença | bairro: quantidade):
{summary}

Considere que cada caso notificado representa cerca de {multiplier} casos no mesmo bairro, já que a amostra é pequena.

Siga os passos:
1. Identifique as 2 combinações de doença e bairro com maior incidência.
2. Para cada uma, indique a causa provável.
3. Sugira uma ação de mitigação.
4. Explique por que essa ação reduz os casos.
5. Estime o percentual de redução de casos esperado com a ação e justifique a estimativa.

Não cite números absolutos de população na resposta.

Responda SOMENTE com um array JSON válido, sem texto adicional e sem blocos de código, no formato:
[
  {{
{schema}
  }}
]"""


def summarize_table(table: AggregationTable) -> list[str]:
    """One "disease | neighborhood: count" line per pair in the table."""
    return [
        f"{disease} | {neighborhood}: {count}"
        for disease, counts in table.items()
        for neighborhood, count in counts.items()
    ]


def build_prompt(
    table: AggregationTable,
    *,
    population: int,
    locality: str,
    extrapolation_multiplier: int,
) -> str:
    """
    Build the analysis prompt for an aggregation table.

    Args:
        table: Case counts by disease and neighborhood.
        population: Population of the locality, embedded literally.
        locality: Name of the locality the cases belong to.
        extrapolation_multiplier: Cases each reported case stands for.

    Returns:
        The prompt text. Deterministic for the same inputs.
    """
    summary = "\n".join(summarize_table(table)) or "(nenhum caso notificado)"
    schema = ",\n".join(f'    "{field}": "string"' for field in RESPONSE_FIELDS)
    return PROMPT_TEMPLATE.format(
        locality=locality,
        population=population,
        summary=summary,
        multiplier=extrapolation_multiplier,
        schema=schema,
    )
