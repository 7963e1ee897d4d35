"""
Repositorios de persistencia para sesiones y PCs
Soporta: memoria, archivo JSON local (extensible)

Cada colección guarda una lista de objetos JSON, con los mismos nombres de
colección que usaba la aplicación web (cybercafe_sessions, cybercafe_pcs).
"""
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from cyberdemand.config.settings import STORAGE_DIR, STORAGE_BACKEND
from cyberdemand.models.records import SessionLog, SessionStatus

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)


class Repository(ABC, Generic[ModelT]):
    """
    Clase base abstracta para repositorios de una colección.

    Los elementos se identifican por su atributo `id`.
    """

    def __init__(self, model: Type[ModelT], collection: str):
        self.model = model
        self.collection = collection

    @abstractmethod
    def _load(self) -> Dict[str, ModelT]:
        """Lee todos los elementos de la colección, indexados por id"""
        pass

    @abstractmethod
    def _save(self, items: Dict[str, ModelT]):
        """Persiste todos los elementos de la colección"""
        pass

    def list(self) -> List[ModelT]:
        """Lista los elementos en orden de inserción"""
        return list(self._load().values())

    def count(self) -> int:
        return len(self._load())

    def get(self, item_id: str) -> ModelT:
        """
        Obtiene un elemento por id

        Raises:
            KeyError: Si el id no existe
        """
        items = self._load()
        if item_id not in items:
            raise KeyError(f"No existe '{item_id}' en {self.collection}")
        return items[item_id]

    def insert(self, item: ModelT) -> ModelT:
        """
        Inserta un elemento nuevo

        Raises:
            ValueError: Si ya existe un elemento con el mismo id
        """
        items = self._load()
        if item.id in items:
            raise ValueError(f"Ya existe '{item.id}' en {self.collection}")

        items[item.id] = item
        self._save(items)
        logger.info(f"✓ Insertado '{item.id}' en {self.collection}")
        return item

    def update(self, item_id: str, changes: Dict) -> ModelT:
        """
        Actualiza campos de un elemento (el id no se puede cambiar)

        Raises:
            KeyError: Si el id no existe
            ValueError: Si los cambios no son válidos para el modelo
        """
        items = self._load()
        if item_id not in items:
            raise KeyError(f"No existe '{item_id}' en {self.collection}")

        data = items[item_id].model_dump()
        data.update({k: v for k, v in changes.items() if k != 'id'})

        try:
            updated = self.model.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Cambios inválidos para '{item_id}': {e}") from e

        items[item_id] = updated
        self._save(items)
        logger.info(f"✓ Actualizado '{item_id}' en {self.collection}")
        return updated

    def delete(self, item_id: str):
        """
        Elimina un elemento

        Raises:
            KeyError: Si el id no existe
        """
        items = self._load()
        if item_id not in items:
            raise KeyError(f"No existe '{item_id}' en {self.collection}")

        del items[item_id]
        self._save(items)
        logger.info(f"✓ Eliminado '{item_id}' de {self.collection}")


class InMemoryRepository(Repository[ModelT]):
    """Repositorio en memoria (pruebas y ejecuciones efímeras)"""

    def __init__(self, model: Type[ModelT], collection: str, items: Optional[List[ModelT]] = None):
        super().__init__(model, collection)
        self._items: Dict[str, ModelT] = {item.id: item for item in (items or [])}

    def _load(self) -> Dict[str, ModelT]:
        return dict(self._items)

    def _save(self, items: Dict[str, ModelT]):
        self._items = dict(items)


class JSONFileRepository(Repository[ModelT]):
    """Repositorio en archivo JSON local: <storage_dir>/<collection>.json"""

    def __init__(self, model: Type[ModelT], collection: str, storage_dir: Optional[Path] = None):
        super().__init__(model, collection)
        self.storage_dir = Path(storage_dir or STORAGE_DIR)
        self.file_path = self.storage_dir / f"{collection}.json"

    def _load(self) -> Dict[str, ModelT]:
        if not self.file_path.exists():
            return {}

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                raw_items = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Error leyendo {self.file_path}: {str(e)}")
            raise ValueError(f"Archivo de almacenamiento corrupto: {self.file_path}") from e

        if not isinstance(raw_items, list):
            raise ValueError(f"Se esperaba una lista JSON en {self.file_path}")

        items = {}
        for raw in raw_items:
            item = self.model.model_validate(raw)
            items[item.id] = item
        return items

    def _save(self, items: Dict[str, ModelT]):
        self.storage_dir.mkdir(parents=True, exist_ok=True)

        with open(self.file_path, 'w', encoding='utf-8') as f:
            json.dump(
                [item.model_dump(mode='json') for item in items.values()],
                f, indent=2, ensure_ascii=False
            )


# ============== FUNCIONES DE UTILIDAD ==============

def create_repository(collection: str,
                      model: Type[ModelT],
                      backend: Optional[str] = None,
                      storage_dir: Optional[Path] = None) -> Repository[ModelT]:
    """
    Crea un repositorio según el backend configurado

    Args:
        collection: Nombre de la colección (ej: 'cybercafe_sessions')
        model: Clase pydantic de los elementos
        backend: 'memory' o 'json' (por defecto STORAGE_BACKEND)
        storage_dir: Directorio para el backend JSON

    Returns:
        Instancia del repositorio apropiado
    """
    backend = (backend or STORAGE_BACKEND).lower()

    if backend == 'memory':
        return InMemoryRepository(model, collection)
    if backend == 'json':
        return JSONFileRepository(model, collection, storage_dir=storage_dir)

    raise ValueError(f"Backend de almacenamiento no soportado: {backend}")


def end_session(repository: Repository[SessionLog], session_id: str) -> SessionLog:
    """Marca una sesión como finalizada"""
    return repository.update(session_id, {'status': SessionStatus.ENDED})
