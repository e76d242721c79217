"""
User-facing message catalog.

The wizard only ever shows strings from here (optionally with the
underlying error text appended), selected by settings.UI_LANGUAGE.
"""

from studio.core.config import settings


MESSAGES = {
    "it": {
        "invalid_type": (
            "Tipo di file non valido. Carica un'immagine JPEG, PNG o WEBP. "
            "Nota: i file .RAF non sono supportati in questa demo."
        ),
        "too_large": "File troppo grande. Carica un'immagine più piccola di {limit_mb}MB.",
        "empty_file": "Il file è vuoto.",
        "unreadable": "Impossibile leggere i dati dell'immagine.",
        "no_image": "Nessun file immagine selezionato.",
        "nothing_to_transfer": (
            "Nessuna immagine elaborata o colori selezionati per il trasferimento."
        ),
        "bad_enhanced": "Impossibile analizzare l'immagine elaborata.",
        "enhance_failed": "Impossibile migliorare l'immagine: {error}",
        "extract_failed": "Impossibile estrarre i colori: {error}",
        "transfer_failed": "Impossibile armonizzare i colori: {error}",
        "suggest_failed": "Impossibile suggerire i parametri: {error}",
        "no_image_returned": "L'API non ha restituito un'immagine.",
        "block_reason": "Motivo del blocco: {reason}.",
        "finish_reason": "Motivo interruzione: {reason}.",
        "model_text": 'Risposta del modello: "{text}"',
        "empty_response": (
            "La risposta del modello era vuota o non conteneva un'immagine. "
            "Il prompt potrebbe essere troppo restrittivo o il modello potrebbe "
            "aver attivato un filtro di sicurezza interno senza fornire dettagli."
        ),
        "generation_failed": "La generazione dell'immagine è fallita: {detail}",
        "no_colors": "La risposta dell'API non conteneva un array di colori valido.",
        "bad_json": "La risposta dell'API non è un JSON valido: {error}",
        "bad_suggestion": "La risposta dell'API non conteneva valori di scherma e brucia validi.",
        "palette_size": "Il numero di colori deve essere compreso tra {low} e {high}.",
        "too_many_pixels": "Immagine troppo grande in pixel. Carica un'immagine con una risoluzione inferiore.",
    },
    "en": {
        "invalid_type": (
            "Invalid file type. Upload a JPEG, PNG or WEBP image. "
            "Note: .RAF files are not supported in this demo."
        ),
        "too_large": "File too large. Upload an image smaller than {limit_mb}MB.",
        "empty_file": "The file is empty.",
        "unreadable": "Could not read the image data.",
        "no_image": "No image file selected.",
        "nothing_to_transfer": "No processed image or selected colors to transfer.",
        "bad_enhanced": "Could not parse the processed image.",
        "enhance_failed": "Could not enhance the image: {error}",
        "extract_failed": "Could not extract colors: {error}",
        "transfer_failed": "Could not harmonize colors: {error}",
        "suggest_failed": "Could not suggest parameters: {error}",
        "no_image_returned": "The API did not return an image.",
        "block_reason": "Block reason: {reason}.",
        "finish_reason": "Finish reason: {reason}.",
        "model_text": 'Model response: "{text}"',
        "empty_response": (
            "The model response was empty or contained no image. The prompt may be "
            "too restrictive or the model may have triggered an internal safety "
            "filter without giving details."
        ),
        "generation_failed": "Image generation failed: {detail}",
        "no_colors": "The API response did not contain a valid colors array.",
        "bad_json": "The API response is not valid JSON: {error}",
        "bad_suggestion": "The API response did not contain valid dodge and burn values.",
        "palette_size": "The number of colors must be between {low} and {high}.",
        "too_many_pixels": "Image has too many pixels. Upload a lower-resolution image.",
    },
}


def message(key: str, **kwargs) -> str:
    """Look up a message in the configured catalog, falling back to Italian."""
    catalog = MESSAGES.get(settings.UI_LANGUAGE, MESSAGES["it"])
    return catalog[key].format(**kwargs)
