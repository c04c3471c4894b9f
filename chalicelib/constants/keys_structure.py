accounts_pk = 'accounts'
accounts_sk = '{account_id}'

account_emails_pk = 'account_emails'
account_emails_sk = '{email}'

vendors_pk = 'vendors'
vendors_sk = '{vendor_id}'

menu_items_pk = 'menu_items'
menu_items_sk = '{menu_item_id}'

orders_pk = 'orders'
orders_sk = '{order_id}'
