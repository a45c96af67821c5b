import json
import logging

from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .data_models import FieldValue, ProcessedDocument, UploadedFile, UserField
from .exceptions import DocumentProcessingError, MalformedSource, UnsupportedFormat
from .field_values import build_user_fields, field_guide, iter_element_ids
from .forms import DocumentUploadForm, FieldDetectionForm, RenderRequestForm
from .llm_fields import detect_fields_with_llm
from .pdf_reconstructor import render_document, uses_top_origin
from .routing import process_document

logger = logging.getLogger(__name__)


def _json_body(request):
    try:
        return json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


@csrf_exempt
@require_POST
def process_document_view(request):
    form = DocumentUploadForm(request.POST, request.FILES)
    if not form.is_valid():
        return JsonResponse({'errors': form.errors.get_json_data()}, status=400)

    uploaded = form.cleaned_data['document']
    upload = UploadedFile(
        name=uploaded.name,
        content_type=uploaded.content_type,
        data=uploaded.read(),
    )
    try:
        document = process_document(upload)
    except UnsupportedFormat as e:
        return JsonResponse({'error': str(e)}, status=415)
    except MalformedSource as e:
        logger.error(f"Could not parse {upload.name!r}: {e}")
        return JsonResponse({'error': str(e)}, status=422)
    except DocumentProcessingError as e:
        return JsonResponse({'error': str(e)}, status=400)

    user_fields = build_user_fields(document, form.cleaned_data.get('recipient_email') or None)
    return JsonResponse({
        'document': document.to_dict(),
        'elementIds': [eid for eid, _ in iter_element_ids(document)],
        'fields': field_guide(document),
        'userFields': [f.to_dict() for f in user_fields],
    })


@csrf_exempt
@require_POST
def render_document_view(request):
    payload = _json_body(request)
    if not isinstance(payload, dict):
        return JsonResponse({'error': 'Request body must be a JSON object'}, status=400)

    form = RenderRequestForm({
        'document': payload.get('document'),
        'user_fields': payload.get('userFields'),
        'field_values': payload.get('fieldValues'),
        'document_id': payload.get('documentId') or '',
    })
    if not form.is_valid():
        return JsonResponse({'errors': form.errors.get_json_data()}, status=400)

    try:
        document = ProcessedDocument.from_dict(form.cleaned_data['document'])
        raw_fields = form.cleaned_data.get('user_fields')
        if raw_fields is None:
            user_fields = build_user_fields(document)
        else:
            user_fields = [UserField.from_dict(f) for f in raw_fields]
        field_values = {
            key: FieldValue.from_dict(value, element_id=key) if isinstance(value, dict) else value
            for key, value in (form.cleaned_data.get('field_values') or {}).items()
        }
    except (KeyError, TypeError, ValueError) as e:
        return JsonResponse({'error': f'Invalid document payload: {e}'}, status=400)

    document_id = form.cleaned_data.get('document_id') or None
    pdf_bytes = render_document(
        document.elements,
        user_fields,
        field_values,
        document.page_size,
        document.page_count,
        document_id=document_id,
        top_origin=uses_top_origin(document.source_format),
    )

    response = HttpResponse(pdf_bytes, content_type='application/pdf')
    filename = f"contract-{document_id}.pdf" if document_id else "contract.pdf"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@csrf_exempt
@require_POST
def detect_fields_view(request):
    payload = _json_body(request)
    form = FieldDetectionForm(payload if isinstance(payload, dict) else {})
    if not form.is_valid() or not form.cleaned_data['text'].strip():
        return JsonResponse({'error': 'Text is required'}, status=400)

    try:
        fields = detect_fields_with_llm(
            form.cleaned_data['text'], model=form.cleaned_data.get('model') or None
        )
    except RuntimeError as e:
        logger.error(f"Error detecting fields: {e}")
        return JsonResponse({'error': 'Failed to detect fields'}, status=500)

    return JsonResponse({'fields': fields})
