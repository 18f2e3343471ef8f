# client_broker/application/dtos/base_dto.py

"""
Classe base para dtos personalizados.

Este módulo define a classe base CustomBaseModel que estende
o BaseModel do Pydantic com funcionalidades comuns a todos os dtos
expostos pela API, que trafegam em camelCase como o IdP.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict


class CustomBaseModel(BaseModel):
    """
    Modelo base personalizado para os dtos da API.

    Aceita tanto os nomes em snake_case quanto os aliases em camelCase
    e serializa usando os aliases.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump_present(self) -> Dict[str, Any]:
        """
        Retorna apenas os campos informados pelo chamador e com valor definido.

        Returns:
            Dict[str, Any]: Dicionário com os atributos do modelo, em snake_case,
            excluindo campos não informados e valores None
        """
        d = self.model_dump(exclude_unset=True)
        return {k: v for k, v in d.items() if v is not None}
