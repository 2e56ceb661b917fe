"""Construction du formulaire de configuration à partir du schéma d'un indexer"""

from typing import Optional
from pydantic import BaseModel

from indexer_console.models.indexer import Config, Indexer, SettingDescriptor, SettingType


# Champ URL synthétique, toujours rendu en premier
URL_FIELD = SettingDescriptor(name="url", label="URL", type=SettingType.TEXT, placeholder="URL")


class ConfigField(BaseModel):
    """Un champ de formulaire rendu: son descripteur et sa valeur courante"""
    
    descriptor: SettingDescriptor
    value: str = ""
    
    @property
    def name(self) -> str:
        return self.descriptor.name
    
    @property
    def placeholder(self) -> str:
        return self.descriptor.placeholder or self.descriptor.label


class ConfigFormBuilder:
    """Convertit (schéma, config) en champs éditables, et les champs en patch de config"""
    
    @staticmethod
    def build_fields(indexer: Indexer, config: Optional[Config] = None) -> list[ConfigField]:
        """
        Construit les champs du formulaire.
        
        Args:
            indexer: Indexer dont on lit le schéma de réglages
            config: Configuration actuelle (clés absentes -> chaîne vide)
            
        Returns:
            Champs dans l'ordre du schéma, précédés du champ URL
        """
        config = config or {}
        descriptors = [URL_FIELD] + [s for s in indexer.settings if s.name != URL_FIELD.name]
        
        fields = []
        for descriptor in descriptors:
            if descriptor.placeholder is None:
                descriptor = descriptor.model_copy(update={"placeholder": descriptor.label})
            fields.append(ConfigField(descriptor=descriptor, value=config.get(descriptor.name, "")))
        return fields
    
    @staticmethod
    def collect_values(fields: list[ConfigField], values: Optional[dict[str, str]] = None) -> Config:
        """
        Relit une valeur par champ rendu et ajoute enabled="true".
        
        Aucune validation: les champs vides partent en chaîne vide, sans conversion
        de type. Les saisies pour un champ non rendu sont ignorées.
        """
        values = values or {}
        config: Config = {}
        for field in fields:
            value = values.get(field.name, field.value)
            config[field.name] = "" if value is None else str(value)
        config["enabled"] = "true"
        return config
