from .auth import User, SessionToken
from .security import SecurityEvent
from .orders import Order, OrderStatusHistory
from .messages import Message
from .content import HeroContent, AboutUs, Company, SocialMediaLink, TermsPolicy

__all__ = [
    'User', 'SessionToken', 'SecurityEvent',
    'Order', 'OrderStatusHistory',
    'Message',
    'HeroContent', 'AboutUs', 'Company', 'SocialMediaLink', 'TermsPolicy',
]
