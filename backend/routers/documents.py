"""
Documents router - register uploaded files against a resident

The file itself already lives in the blob store; a document row records
its URL, name, type and MIME type.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from models import Document, DOCUMENT_TYPES
from records import document_to_dict, is_valid_object_id, to_json
from schemas import DocumentCreate
from routers.residents import get_resident_or_404

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=201)
async def create_document(data: DocumentCreate, db: Session = Depends(get_db)):
    if data.type not in DOCUMENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid document type. Must be one of: {', '.join(DOCUMENT_TYPES)}",
        )
    resident = get_resident_or_404(db, data.resident_id)

    document = Document(**data.model_dump())
    db.add(document)
    db.commit()
    db.refresh(document)

    logger.info(f"Document '{document.name}' ({document.type}) added to resident {resident.id}")
    return {
        "success": True,
        "message": "Document uploaded successfully",
        "data": to_json(document_to_dict(document)),
    }


@router.get("")
async def list_documents(resident_id: str = Query(...), db: Session = Depends(get_db)):
    """Documents for one resident in upload order"""
    if not is_valid_object_id(resident_id):
        raise HTTPException(status_code=400, detail="Invalid resident ID format")

    documents = (
        db.query(Document)
        .filter(Document.resident_id == resident_id)
        .order_by(Document.uploaded_at)
        .all()
    )
    return {
        "success": True,
        "data": [to_json(document_to_dict(d)) for d in documents],
        "count": len(documents),
    }


@router.delete("/{document_id}")
async def delete_document(document_id: str, db: Session = Depends(get_db)):
    if not is_valid_object_id(document_id):
        raise HTTPException(status_code=400, detail="Invalid document ID format")

    document = db.query(Document).filter(Document.id == document_id).first()
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")

    db.delete(document)
    db.commit()
    return {"success": True, "message": "Document deleted successfully"}
