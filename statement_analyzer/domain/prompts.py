"""Instruction prompts sent to Claude alongside the statement PDF"""

from typing import Dict

from statement_analyzer.domain.models import AccountCategory

# Confidence the model must stay below when the statement is illegible or ambiguous
LOW_CONFIDENCE_THRESHOLD = 50

KNOWN_INSTITUTIONS = [
    "BBVA",
    "Santander",
    "Banamex",
    "HSBC",
    "Banorte",
    "Scotiabank",
    "Inbursa",
    "Banco Azteca",
    "BanCoppel",
    "Nu",
    "American Express",
]

CATEGORY_KEYWORDS = """PATRONES DE CATEGORIZACIÓN:
- OXXO, 7-ELEVEN, SORIANA, WALMART, CHEDRAUI, LA COMER = Alimentación
- UBER, DIDI, GASOLINA, PEMEX = Transporte
- CFE, TELMEX, IZZI, MEGACABLE, TOTALPLAY = Servicios
- NETFLIX, SPOTIFY, AMAZON PRIME, DISNEY = Entretenimiento
- FARMACIA, HOSPITAL = Salud
- RENTA, HIPOTECA = Vivienda
- COLEGIATURA = Educación
- SPEI, TRASPASO = Transferencias
- AMAZON, LIVERPOOL, MERCADO LIBRE = Compras
- Cualquier otro concepto = Otros

Categorías válidas (usa exactamente estos nombres): Alimentación, Transporte, Vivienda, Entretenimiento, Salud, Educación, Compras, Servicios, Transferencias, Otros"""

OUTPUT_FORMAT = f"""CONFIANZA:
- "confidence" es un entero de 0 a 100 que refleja qué tan legible y completo es el documento
- Si el documento es ilegible, está incompleto o es ambiguo, reporta un valor menor a {LOW_CONFIDENCE_THRESHOLD}

Responde ÚNICAMENTE con JSON válido con esta estructura:
{{
  "confidence": 85,
  "transactions": [
    {{
      "date": "2024-01-15",
      "description": "COMPRA OXXO CENTRO DF",
      "category": "Alimentación",
      "amount": -150.50,
      "kind": "expense"
    }}
  ],
  "summary": {{
    "totalIncome": 15000,
    "totalExpenses": -8500,
    "netBalance": 6500,
    "transactionCount": 45,
    "period": "Enero 2024"
  }},
  "categoryBreakdown": {{
    "Alimentación": -2500,
    "Transporte": -1200
  }}
}}

- "kind" es "income" o "expense"
- "netBalance" = totalIncome + totalExpenses
- Fechas en formato YYYY-MM-DD

CRÍTICO: Solo responde JSON válido, sin texto adicional ni bloques de código."""

DETECTION_PROMPT = f"""Analiza este estado de cuenta bancario mexicano en PDF y determina qué tipo de cuenta es.

INDICADORES DE TARJETA DE CRÉDITO (CREDIT_CARD):
- "pago mínimo", "pago para no generar intereses"
- "fecha límite de pago"
- "cargos regulares", "cargos no domiciliados"
- "fecha de corte", "límite de crédito"

INDICADORES DE CUENTA DE DÉBITO (DEBIT_ACCOUNT):
- "cuenta de cheques", "cuenta de débito", "nómina"
- "saldo inicial", "saldo anterior"
- "saldo final"
- "retiros", "depósitos"

INSTITUCIONES RECONOCIDAS: {", ".join(KNOWN_INSTITUTIONS)}. Si no es ninguna, usa "Otro".

Responde ÚNICAMENTE con este JSON, sin texto adicional:
{{
  "accountCategory": "CREDIT_CARD",
  "institutionName": "BBVA",
  "confidence": 90
}}

"accountCategory" debe ser exactamente "CREDIT_CARD" o "DEBIT_ACCOUNT"."""

CREDIT_CARD_TEMPLATE = """Analiza este estado de cuenta de TARJETA DE CRÉDITO de {institution_name} y extrae las transacciones.

INSTRUCCIONES ESPECÍFICAS:
1. Extrae TODOS los cargos y compras: fecha, descripción completa y monto
2. Los cargos y compras son gastos: "kind": "expense" con monto NEGATIVO
3. EXCLUYE por completo los pagos y abonos a la tarjeta (por ejemplo "SU PAGO GRACIAS", "PAGO RECIBIDO"); no los incluyas en la lista
4. Convierte los formatos de fecha del banco (por ejemplo "15-ENE-2024", "15 ENE", "15/01/2024") a YYYY-MM-DD
5. Reconoce montos en pesos mexicanos ($X,XXX.XX)
6. Meses sin intereses: registra solo la mensualidad cargada en este periodo

{category_keywords}

{output_format}"""

DEBIT_ACCOUNT_TEMPLATE = """Analiza este estado de cuenta de DÉBITO / CHEQUES de {institution_name} y extrae las transacciones.

INSTRUCCIONES ESPECÍFICAS:
1. Extrae TODAS las transacciones: fecha, descripción completa y monto
2. Depósitos, transferencias recibidas y nómina son ingresos: "kind": "income" con monto POSITIVO
3. Retiros, pagos, compras y transferencias enviadas son gastos: "kind": "expense" con monto NEGATIVO
4. Maneja formatos de fecha mexicanos (DD/MM/YYYY, DD-MM-YYYY, DD-MMM) y conviértelos a YYYY-MM-DD
5. Reconoce montos en pesos mexicanos ($X,XXX.XX o $X.XXX,XX)
6. No incluyas renglones de saldo inicial ni saldo final como transacciones

{category_keywords}

{output_format}"""

EXTRACTION_TEMPLATES: Dict[AccountCategory, str] = {
    AccountCategory.CREDIT_CARD: CREDIT_CARD_TEMPLATE,
    AccountCategory.DEBIT_ACCOUNT: DEBIT_ACCOUNT_TEMPLATE,
}


def build_extraction_prompt(account_category: AccountCategory, institution_name: str) -> str:
    """Render the extraction template for a detected account category"""
    template = EXTRACTION_TEMPLATES[account_category]
    return template.format(
        institution_name=institution_name or "banco no identificado",
        category_keywords=CATEGORY_KEYWORDS,
        output_format=OUTPUT_FORMAT,
    )
