from django import forms
from django.utils.translation import gettext_lazy as _

from .config import settings


class DocumentUploadForm(forms.Form):
    document = forms.FileField(label=_("Contract document (PDF, DOCX or TXT)"))
    recipient_email = forms.EmailField(
        label=_("Recipient email"),
        required=False,
        help_text=_("Attached to every detected field as its recipient."),
    )

    def clean(self):
        cleaned_data = super().clean()
        document = cleaned_data.get('document')
        if document and document.size > settings.MAX_UPLOAD_MB * 1024 * 1024:
            self.add_error('document', _("The document exceeds the upload size limit."))
        return cleaned_data


class RenderRequestForm(forms.Form):
    document = forms.JSONField(label=_("Processed document"))
    user_fields = forms.JSONField(label=_("Field definitions"), required=False)
    field_values = forms.JSONField(label=_("Field values"), required=False)
    document_id = forms.CharField(label=_("Document ID"), required=False, max_length=64)

    def clean(self):
        cleaned_data = super().clean()
        document = cleaned_data.get('document')
        if document is not None and not isinstance(document, dict):
            self.add_error('document', _("The processed document must be a JSON object."))
        user_fields = cleaned_data.get('user_fields')
        if user_fields is not None and not isinstance(user_fields, list):
            self.add_error('user_fields', _("Field definitions must be a list."))
        field_values = cleaned_data.get('field_values')
        if field_values is not None and not isinstance(field_values, dict):
            self.add_error('field_values', _("Field values must be an object keyed by field id."))
        return cleaned_data


class FieldDetectionForm(forms.Form):
    text = forms.CharField(label=_("Document text"), strip=False)
    model = forms.CharField(label=_("Model"), required=False)
