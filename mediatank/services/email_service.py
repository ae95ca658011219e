import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from flask import current_app

logger = logging.getLogger(__name__)

class EmailService:
    def __init__(self, config=None):
        config = config if config is not None else current_app.config
        self.smtp_host = config.get('SMTP_HOST')
        self.smtp_port = config.get('SMTP_PORT') or 587
        self.smtp_user = config.get('SMTP_USER')
        self.smtp_password = config.get('SMTP_PASSWORD')
        self.from_email = config.get('SENDER_EMAIL') or self.smtp_user
        self.sender_name = config.get('SENDER_NAME')
        self.project_name = config.get('PROJECT_NAME')

    @property
    def is_configured(self):
        return bool(self.smtp_host and self.from_email)

    def send_email(self, recipient_email, subject, html_body, plain_body=None):
        """
        Send an email to a specific recipient using SMTP

        Args:
            recipient_email (str): The email address of the recipient
            subject (str): The subject of the email
            html_body (str): The HTML body content of the email
            plain_body (str): The plain text body content (optional)

        Returns:
            bool: True if email sent successfully, False otherwise
        """
        if not self.is_configured:
            logger.warning(f"SMTP not configured, skipping email to {recipient_email}: {subject}")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = f"{subject} | {self.project_name}"
            msg['From'] = f"{self.sender_name} <{self.from_email}>"
            msg['To'] = recipient_email

            if plain_body is None:
                # Plain-text fallback from the template markup
                plain_body = html_body.replace('<p>', '').replace('</p>', '\n\n').replace('<strong>', '').replace('</strong>', '').replace('<li>', '- ').replace('</li>', '\n')

            html_content = f"""
            <html>
                <body style="font-family: Arial, sans-serif; margin: 0; padding: 20px;">
                    <div style="max-width: 600px; margin: 0 auto; background: white; padding: 20px; border-radius: 5px;">
                        <h1 style="color: #1a1a2e;">{subject}</h1>
                        <div style="color: #333;">
                            {html_body}
                        </div>
                        <hr style="margin: 20px 0;">
                        <div style="color: #999; font-size: 12px;">
                            Sincerely, {self.project_name} Team
                        </div>
                    </div>
                </body>
            </html>
            """

            msg.attach(MIMEText(plain_body, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            smtp_class = smtplib.SMTP_SSL if int(self.smtp_port) == 465 else smtplib.SMTP
            with smtp_class(self.smtp_host, self.smtp_port) as server:
                if smtp_class is smtplib.SMTP:
                    server.starttls()
                if self.smtp_user:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

                logger.info(f"Email sent successfully to {recipient_email}")
                return True

        except Exception as e:
            logger.error(f"Failed to send email to {recipient_email}: {str(e)}")
            return False


def get_email_service():
    mailer = current_app.extensions.get('mailer')
    if mailer is None:
        mailer = EmailService()
        current_app.extensions['mailer'] = mailer
    return mailer
