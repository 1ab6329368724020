"""Contacts, companies, leads and tasks."""

from __future__ import annotations

import logging
from typing import Sequence

from ..models import Company, Contact, EntityType, Lead, Task, TaskResult
from .base import EntityService

logger = logging.getLogger(__name__)


class ContactsService(EntityService):
    path = "/contacts"
    key = "contacts"
    model = Contact
    noun = "contact"


class CompaniesService(EntityService):
    path = "/companies"
    key = "companies"
    model = Company
    noun = "company"


class LeadsService(EntityService):
    path = "/leads"
    key = "leads"
    model = Lead
    noun = "lead"

    async def _link(self, lead_id: int, entity_type: str, entity_ids: Sequence[int]) -> None:
        links = [{"to_entity_id": entity_id, "to_entity_type": entity_type} for entity_id in entity_ids]
        await self.client.post_json(f"/leads/{lead_id}/link", {"links": links})

    async def link_contacts(self, lead_id: int, contact_ids: Sequence[int]) -> None:
        await self._link(lead_id, EntityType.CONTACTS, contact_ids)
        logger.info(f"Linked {len(contact_ids)} contacts to amoCRM lead {lead_id}")

    async def link_company(self, lead_id: int, company_id: int) -> None:
        await self._link(lead_id, EntityType.COMPANIES, [company_id])


class TasksService(EntityService):
    path = "/tasks"
    key = "tasks"
    model = Task
    noun = "task"

    async def complete(self, task_id: int, result_text: str = "") -> Task:
        """Mark a task done, recording `result_text` as its outcome."""
        task = Task(id=task_id, is_completed=True, result=TaskResult(text=result_text))
        return await self.update(task)
