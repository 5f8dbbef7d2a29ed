"""
Pricing error taxonomy.

Two families, so the HTTP layer can tell them apart:
- PricingInputError: the caller sent something we can't price (400-class).
- ConfigurationError: the admin-maintained catalog is broken (500-class).

Pricing fails closed: every error aborts the whole calculation.
"""


class PricingError(Exception):
    """Base for everything the pricing engine raises."""


class PricingInputError(PricingError):
    """User-correctable request problem."""


class ConfigurationError(PricingError):
    """Catalog or formula misconfiguration, not the caller's fault."""


# --- Request / specification errors ---

class InvalidRequest(PricingInputError):
    pass


class MissingSpecification(PricingInputError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing specification field: {field}")


class InvalidQuantity(InvalidRequest):
    def __init__(self, quantity, context: str = ""):
        self.quantity = quantity
        message = f"Invalid quantity: {quantity}"
        if context:
            message += f" ({context})"
        super().__init__(message)


class MaterialUnavailable(PricingInputError):
    def __init__(self, paper_type: str, density):
        self.paper_type = paper_type
        self.density = density
        super().__init__(f"No active paper stock for {paper_type} {density}g/m2")


# --- Formula errors ---

class FormulaError(ConfigurationError):
    pass


class InvalidFormula(FormulaError):
    def __init__(self, position: int, reason: str):
        self.position = position
        self.reason = reason
        super().__init__(f"Invalid formula at position {position}: {reason}")


class UnknownVariable(FormulaError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown variable in formula: {name}")


class DivisionByZero(FormulaError):
    def __init__(self):
        super().__init__("Division by zero in formula")


class NonFiniteResult(FormulaError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Formula produced a non-finite value: {value}")


# --- Catalog errors ---

class OperationNotConfigured(ConfigurationError):
    def __init__(self, product_type: str, operation: str):
        self.product_type = product_type
        self.operation = operation
        super().__init__(f"No active norm for operation '{operation}' on '{product_type}'")


class ServiceUnavailable(ConfigurationError):
    def __init__(self, service_id):
        self.service_id = service_id
        super().__init__(f"Service {service_id} is missing or inactive")


class CurrencyMismatch(ConfigurationError):
    def __init__(self, name: str, currency: str, expected: str):
        self.currency = currency
        self.expected = expected
        super().__init__(f"'{name}' is priced in {currency}, working currency is {expected}")


class InvalidTierBasis(ConfigurationError):
    def __init__(self, basis, product_type: str = None):
        self.basis = basis
        self.product_type = product_type
        where = f" for '{product_type}'" if product_type else ""
        super().__init__(f"Unknown tier basis{where}: {basis}")
