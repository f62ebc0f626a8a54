"""
Analysis service.

Runs one analysis end to end:
aggregate -> build prompt -> call the model -> interpret the reply.

A rate-limited upstream is answered with a fixed placeholder; any other
upstream failure is raised as GatewayFailureError for the HTTP layer.
"""

import time

from config.config import Settings, get_settings
from config.logging_config import get_logger
from models.models import AnalysisResponse, CaseRecord, Recommendation
from services.case_aggregator import aggregate_cases, total_cases
from services.model_gateway import GatewayOutcome, GatewayResult, ModelGateway, get_model_gateway
from services.prompt_builder import build_prompt
from services.response_interpreter import interpret_reply

logger = get_logger(__name__)

SIMULATED_MARK = "(resposta simulada)"

RATE_LIMIT_PLACEHOLDER: tuple[Recommendation, ...] = (
    Recommendation(
        disease="Dengue",
        neighborhood="Centro",
        probable_cause=f"Acúmulo de água parada em recipientes e terrenos baldios. {SIMULATED_MARK}",
        mitigation=f"Mutirão de eliminação de criadouros com visitas casa a casa. {SIMULATED_MARK}",
        mitigation_rationale=f"Sem criadouros o ciclo do mosquito é interrompido. {SIMULATED_MARK}",
        reduction_estimate_percent="30",
        reduction_rationale=f"Estimativa fixa usada quando a API está indisponível. {SIMULATED_MARK}",
    ),
    Recommendation(
        disease="Gripe",
        neighborhood="Bairro Novo",
        probable_cause=f"Aglomeração em ambientes fechados e baixa cobertura vacinal. {SIMULATED_MARK}",
        mitigation=f"Campanha de vacinação na unidade básica de saúde do bairro. {SIMULATED_MARK}",
        mitigation_rationale=f"A vacina reduz a transmissão e os casos graves. {SIMULATED_MARK}",
        reduction_estimate_percent="20",
        reduction_rationale=f"Estimativa fixa usada quando a API está indisponível. {SIMULATED_MARK}",
    ),
)


class GatewayFailureError(Exception):
    """The model call failed for a reason other than rate limiting."""

    def __init__(self, result: GatewayResult):
        super().__init__(result.message or "Falha ao consultar o modelo")
        self.status_code = result.status_code
        self.message = result.message


class AnalysisService:
    """
    Orchestrates one case analysis per call.

    Stateless: the aggregation table and prompt live only for the call.
    """

    def __init__(self, settings: Settings | None = None, gateway: ModelGateway | None = None):
        self.settings = settings or get_settings()
        self.gateway = gateway or get_model_gateway()

    def build_prompt_for(self, records: list[CaseRecord]) -> str:
        table = aggregate_cases(records)
        logger.info(
            "Cases aggregated",
            records=len(records),
            counted=total_cases(table),
            diseases=len(table),
        )
        return build_prompt(
            table,
            population=self.settings.locality_population,
            locality=self.settings.locality_name,
            extrapolation_multiplier=self.settings.case_extrapolation_multiplier,
        )

    async def analyze(self, records: list[CaseRecord]) -> AnalysisResponse:
        """
        Analyse a batch of case records.

        Raises:
            GatewayFailureError: the upstream call failed (not rate limited).
        """
        start_time = time.perf_counter()
        prompt = self.build_prompt_for(records)

        result = await self.gateway.complete(prompt)

        if result.outcome is GatewayOutcome.RATE_LIMITED:
            logger.warning("Rate limited, returning placeholder recommendations")
            return AnalysisResponse(recomendacoes=list(RATE_LIMIT_PLACEHOLDER))
        if result.outcome is GatewayOutcome.FAILURE:
            raise GatewayFailureError(result)

        interpreted = interpret_reply(result.text or "")
        logger.info(
            "Analysis completed",
            structured=interpreted.structured,
            processing_time_ms=int((time.perf_counter() - start_time) * 1000),
        )
        return interpreted.to_response()


# Singleton instance
_analysis_service: AnalysisService | None = None


def get_analysis_service() -> AnalysisService:
    """Get the analysis service singleton."""
    global _analysis_service
    if _analysis_service is None:
        _analysis_service = AnalysisService()
    return _analysis_service
